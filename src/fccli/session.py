"""Mutable per-process session state: the current working directory and the
active transaction token, with change notification for observers."""
import logging
from typing import Any, Callable, Optional

from fccli.paths import normalize_remote_path

logger = logging.getLogger(__name__)

CWD_UPDATE = 'cwd-update'
TRANSACTION_UPDATE = 'transaction-update'

Listener = Callable[[str, Any], None]


class Session:
    def __init__(self, host: str = None, base_path: str = '', cwd: str = '/', transaction_token: str = None):
        self.host = host
        self.base_path = base_path
        self._cwd = normalize_remote_path(cwd or '/')
        self._transaction_token = transaction_token
        self._listeners: list[Listener] = []

    def __repr__(self):
        return f'<Session cwd={self._cwd!r} transaction_token={self._transaction_token!r}>'

    @property
    def cwd(self) -> str:
        return self._cwd

    @property
    def transaction_token(self) -> Optional[str]:
        return self._transaction_token

    @property
    def in_transaction(self) -> bool:
        return self._transaction_token is not None

    def subscribe(self, listener: Listener):
        """Register a callable that receives `(event, value)` on every change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, event: str, value: Any):
        for listener in self._listeners:
            listener(event, value)

    def set_cwd(self, path: str):
        self._cwd = normalize_remote_path(path)
        logger.debug(f'Working directory is now {self._cwd}')
        self._notify(CWD_UPDATE, self._cwd)

    def set_transaction_token(self, token: Optional[str]):
        self._transaction_token = token or None
        self._notify(TRANSACTION_UPDATE, self._transaction_token)
