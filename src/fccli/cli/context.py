from argparse import ArgumentParser, Namespace
from dataclasses import dataclass, field
from importlib.metadata import version, PackageNotFoundError
from types import ModuleType
from typing import Optional

from fccli.client import Endpoint, Client
from fccli.client.auth import get_authenticator
from fccli.config import Config
from fccli.location import Location
from fccli.repo import Repository
from fccli.session import Session

AUTH_KEYS = ('AUTH_TOKEN', 'JWT', 'JWT_SECRET', 'CLIENT_CERT', 'CLIENT_KEY', 'BASIC_USER', 'BASIC_PASSWORD')


def get_version() -> str:
    try:
        return version('fccli')
    except PackageNotFoundError:
        return 'unknown'


@dataclass
class FcContext:
    """Holds the configuration, and builds the session, client, location, and
    repository objects from it on first use."""
    config: Config = None
    args: Namespace = None
    parser: ArgumentParser = None
    command_modules: dict[str, ModuleType] = field(default_factory=dict)
    interactive: bool = False
    """`True` while running commands from the interactive shell"""
    _session: Session = None
    _endpoint: Endpoint = None
    _client: Client = None
    _location: Location = None
    _repo: Repository = None

    @property
    def version(self) -> str:
        return get_version()

    @property
    def session(self) -> Session:
        if self._session is None:
            self._session = Session(
                host=self.config.get('HOST'),
                base_path=self.config.get('BASE_PATH'),
                cwd=self.config.get('CWD'),
            )
            self._session.subscribe(self.config.on_session_event)
        return self._session

    @property
    def endpoint(self) -> Endpoint:
        if self._endpoint is None:
            self._endpoint = Endpoint(
                host=self.config.get('HOST'),
                base_path=self.config.get('BASE_PATH') or '',
            )
        return self._endpoint

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(
                endpoint=self.endpoint,
                auth=get_authenticator({key: self.config.get(key) for key in AUTH_KEYS}),
                state=self.session,
                credentials=self.config.credentials,
                on_login=self.config.on_login,
                server_cert=self.config.get('SERVER_CERT'),
                ua_string=f'fccli/{self.version}',
            )
        return self._client

    @property
    def location(self) -> Location:
        if self._location is None:
            self._location = Location(client=self.client, session=self.session)
        return self._location

    @property
    def repo(self) -> Repository:
        if self._repo is None:
            self._repo = Repository(client=self.client, global_prefixes=self.config.global_prefixes)
        return self._repo

    def reset_client(self):
        """Discard the client and everything built on it, so that changed connection
        settings take effect. The session is kept."""
        self._endpoint = None
        self._client = None
        self._location = None
        self._repo = None

    def resolve(self, path: Optional[str] = None) -> str:
        return self.location.resolve(path)
