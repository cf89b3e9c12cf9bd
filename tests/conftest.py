"""Common test fixtures"""
import pytest
import requests
from httpretty import httpretty

from fccli.cli import get_parser
from fccli.cli.context import FcContext
from fccli.client import Endpoint, Client
from fccli.config import Config
from fccli.location import Location
from fccli.namespaces import DEFAULT_PREFIXES, ldp
from fccli.paths import join_url_path
from fccli.repo import Repository
from fccli.session import Session

HOST = 'http://localhost:9999'
BASE_PATH = '/rest'

CONTAINER_LINK = f'<{ldp.BasicContainer}>;rel="type", <{ldp.Resource}>;rel="type"'
BINARY_LINK = f'<{ldp.NonRDFSource}>;rel="type", <{ldp.Resource}>;rel="type"'


@pytest.fixture
def monkeypatch_request(monkeypatch):
    def _monkeypatch_request(response):
        if isinstance(response, type):
            response = response()
        monkeypatch.setattr(requests.Session, 'request', lambda *args, **kwargs: response)
    return _monkeypatch_request


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(host=HOST, base_path=BASE_PATH)


@pytest.fixture
def session() -> Session:
    return Session(host=HOST, base_path=BASE_PATH)


@pytest.fixture
def client(endpoint, session) -> Client:
    return Client(endpoint=endpoint, state=session)


@pytest.fixture
def location(client, session) -> Location:
    return Location(client=client, session=session)


@pytest.fixture
def repo(client) -> Repository:
    return Repository(client=client, global_prefixes=DEFAULT_PREFIXES)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(tmp_path / '.fccli', overrides={'HOST': HOST, 'BASE_PATH': BASE_PATH}, env={})


@pytest.fixture
def context(config) -> FcContext:
    parser, command_modules = get_parser()
    return FcContext(config=config, parser=parser, command_modules=command_modules)


@pytest.fixture
def register_container(endpoint):
    """Register HEAD and GET responses for a container with the given children.
    Additional n-triples lines may be given as `triples`."""
    def _register_container(path: str, children=(), triples=()):
        url = endpoint.url_for(path)
        lines = [f'<{url}> <{ldp.contains}> <{endpoint.url_for(join_url_path(path, child))}> .' for child in children]
        lines.extend(triples)
        httpretty.register_uri(
            method=httpretty.HEAD,
            uri=url,
            status=200,
            adding_headers={'Link': CONTAINER_LINK},
        )
        httpretty.register_uri(
            method=httpretty.GET,
            uri=url,
            status=200,
            body=''.join(line + '\n' for line in lines),
            adding_headers={'Content-Type': 'application/n-triples'},
        )
        return url
    return _register_container


@pytest.fixture
def register_binary(endpoint):
    def _register_binary(path: str, filename: str = 'file.txt', content: bytes = b'Hello'):
        url = endpoint.url_for(path)
        headers = {
            'Link': BINARY_LINK,
            'Content-Disposition': f'attachment; filename="{filename}"',
        }
        httpretty.register_uri(method=httpretty.HEAD, uri=url, status=200, adding_headers=headers)
        httpretty.register_uri(
            method=httpretty.GET,
            uri=url,
            status=200,
            body=content,
            adding_headers={**headers, 'Content-Type': 'application/octet-stream'},
        )
        return url
    return _register_binary


@pytest.fixture
def register_not_found(endpoint):
    def _register_not_found(path: str):
        url = endpoint.url_for(path)
        for method in (httpretty.HEAD, httpretty.GET):
            httpretty.register_uri(method=method, uri=url, status=404)
        return url
    return _register_not_found
