import logging
from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable, NamedTuple, Optional

from requests import Response, Session
from requests.auth import AuthBase
from requests.exceptions import ConnectionError, Timeout
from requests_jwtauth import HTTPBearerAuth
from urlobject import URLObject

from fccli.client.auth import Credentials, local_login
from fccli.exceptions import AuthError, NetworkError
from fccli.paths import normalize_remote_path
from fccli.utils import rdf_media_type, sha256_digest

logger = logging.getLogger(__name__)

OMIT_SERVER_MANAGED_TRIPLES = 'return=representation; omit="http://fedora.info/definitions/v4/repository#ServerManaged"'

REAUTH_STATUSES = (HTTPStatus.FORBIDDEN, HTTPStatus.INTERNAL_SERVER_ERROR)
"""Responses that trigger one re-login attempt when credentials are configured."""


class TypedText(NamedTuple):
    """Data object combining a string value and its media type,
    expressed as a MIME type string.

    ```pycon
    >>> turtle = TypedText('text/turtle', '<> a <http://www.w3.org/ns/ldp#Container> .')
    >>> str(turtle)
    '<> a <http://www.w3.org/ns/ldp#Container> .'
    ```

    Two `TypedText` objects are only equal if both the string value
    and the media type match.
    """

    media_type: str
    """MIME type, e.g. "text/plain" or "text/turtle" """

    value: str
    """string value"""

    def __str__(self):
        return self.value

    def __bool__(self):
        return bool(self.value)

    def __len__(self):
        return len(self.value)


class ClientError(Exception):
    """Raised when a `Client` receives an HTTP error response (4xx or 5xx)."""
    def __init__(self, response: Response, *args):
        super().__init__(*args)

        self.response: Response = response
        """The Requests `Response` object from the failed request."""

        self.status_code = self.response.status_code
        """The numeric HTTP status code (e.g., 404) for the failed request."""

        self.reason = self.response.reason or HTTPStatus(self.status_code).phrase
        """The reason phrase (e.g., "Not Found") for the failed request. If
        the `response` does not have a reason code, use the standard status
        phrase from the built-in `HTTPStatus` enumeration corresponding to the
        `status_code`."""

    def __str__(self):
        return f'{self.status_code} {self.reason}'


class TransactionError(Exception):
    """Raised when a transaction fails."""
    pass


class Endpoint:
    """Conceptual entry point for a Fedora repository: a host plus the base
    path of the REST API on that host."""

    def __init__(self, host: str, base_path: str = ''):
        self.host = URLObject(host.rstrip('/'))
        """Scheme, hostname, and port of the repository server"""

        self.base_path = base_path.rstrip('/')
        """Path to the REST API on the `host`, without a trailing slash"""

        if self.base_path and not self.base_path.startswith('/'):
            self.base_path = '/' + self.base_path

    @property
    def url(self) -> URLObject:
        """Repository root URL (the `host` plus the `base_path`)."""
        return URLObject(self.host + self.base_path)

    def __contains__(self, item):
        return self.contains(item)

    def contains(self, uri: str) -> bool:
        """
        Returns `True` if the given URI string is contained within this
        repository, `False` otherwise. You may also use the builtin operator
        `in` to do this same check:

        ```pycon
        >>> endpoint = Endpoint(host='http://localhost:8080', base_path='/fcrepo/rest')

        >>> 'http://localhost:8080/fcrepo/rest/123' in endpoint
        True

        >>> 'http://example.com/123' in endpoint
        False
        ```
        """
        return str(uri).startswith(self.url)

    def url_for(self, path: str, transaction_token: Optional[str] = None) -> str:
        """Full URL for a repository path. The transaction token, if given, is
        inserted between the base path and the resource path.

        ```pycon
        >>> endpoint = Endpoint(host='http://localhost:8080', base_path='/rest')

        >>> endpoint.url_for('/foo/bar')
        'http://localhost:8080/rest/foo/bar'

        >>> endpoint.url_for('/foo', transaction_token='tx:123')
        'http://localhost:8080/rest/tx:123/foo'
        ```
        """
        path = '/' + path.lstrip('/') if path else ''
        if path == '/':
            path = ''
        prefix = self.url + (f'/{transaction_token}' if transaction_token else '')
        return prefix + path

    def repo_path(self, resource_uri: Optional[str], transaction_token: Optional[str] = None) -> Optional[str]:
        """
        Returns the repository path for the given resource URI, i.e. the
        path with the `url` (and the transaction segment, if any) removed.
        URIs outside this repository are returned unchanged.

        ```pycon
        >>> endpoint = Endpoint(host='http://localhost:8080', base_path='/fcrepo/rest')

        >>> endpoint.repo_path('http://localhost:8080/fcrepo/rest/obj/123')
        '/obj/123'
        ```
        """
        if resource_uri is None:
            return None
        resource_uri = str(resource_uri)
        if not self.contains(resource_uri):
            return resource_uri
        path = resource_uri[len(self.url):]
        if transaction_token and (path == f'/{transaction_token}' or path.startswith(f'/{transaction_token}/')):
            path = path[len(transaction_token) + 1:]
        return normalize_remote_path(path or '/')

    @property
    def transaction_endpoint(self) -> str:
        """Send an HTTP POST request to this URL to create a new transaction."""
        return self.url_for('/fcr:tx')


class SessionHeaderAttribute:
    """Descriptor that maps an attribute to a session header name. Requires
    the instance to have a `session` attribute with a `headers` attribute whose
    value is a mapping that supports the methods `get()` and `update()`, plus
    the `del` operator.
    """

    def __init__(self, header_name: str):
        self.header_name = header_name
        """The HTTP header name"""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.session.headers.get(self.header_name, None)

    def __set__(self, instance, value):
        if value is not None:
            instance.session.headers.update({self.header_name: str(value)})

    def __delete__(self, instance):
        try:
            del instance.session.headers[self.header_name]
        except KeyError:
            pass


def upload_headers(file: str | Path, filename: str = None) -> dict[str, str]:
    """Headers for uploading a local file. Files with a known RDF extension get
    the matching `Content-Type`. Anything else is an opaque binary, and gets a
    `Digest` header with its SHA-256 checksum and a `Content-Disposition`
    header with its filename (or `filename`, if given)."""
    media_type = rdf_media_type(file)
    if media_type is not None:
        return {'Content-Type': media_type}
    return {
        'Digest': f'sha256={sha256_digest(file)}',
        'Content-Disposition': f'attachment; filename="{filename or Path(file).name}"',
    }


class Client:
    """HTTP client for interacting with a Fedora repository. Request methods
    take a repository path (e.g., `/foo/bar`); full URLs are used as is. While
    the shared session state holds a transaction token, every repository path
    is routed through that transaction."""
    ua_string = SessionHeaderAttribute('User-Agent')
    """`User-Agent` header value"""
    session: Session
    """Underlying Requests library
    [Session object](https://requests.readthedocs.io/en/latest/user/advanced/#session-objects),
    or a subclass thereof"""

    def __init__(
        self,
        endpoint: Endpoint,
        auth: AuthBase = None,
        state: Any = None,
        credentials: Credentials = None,
        on_login: Callable[[str], None] = None,
        server_cert: str = None,
        ua_string: str = None,
        session: Session = None,
    ):
        self.endpoint: Endpoint = endpoint
        """Fedora repository endpoint"""

        self.state = state
        """Shared session state; only its `transaction_token` is used here"""

        self.credentials: Optional[Credentials] = credentials
        """Username and password used to log in again after a refused request"""

        self.on_login = on_login
        """Called with the new JWT after a successful re-login"""

        if session is None:
            # defaults to a basic requests.Session object
            self.session = Session()
        else:
            # otherwise, use the session object as is
            self.session = session

        self.session.auth = auth
        if server_cert is not None:
            self.session.verify = server_cert

        self.ua_string = ua_string

    @property
    def transaction_token(self) -> Optional[str]:
        return getattr(self.state, 'transaction_token', None)

    def url_for(self, path: str) -> str:
        if path.startswith('http://') or path.startswith('https://'):
            return path
        return self.endpoint.url_for(path, self.transaction_token)

    def repo_path(self, uri: str) -> str:
        """Repository path for `uri`, with any transaction segment removed."""
        return self.endpoint.repo_path(uri, self.transaction_token)

    def _send(self, method: str, url: str, file: str | Path = None, **kwargs) -> Response:
        logger.debug(f'{method} {url}')
        try:
            if file is not None:
                # opened per attempt, so a replayed request re-reads the file
                with open(file, 'rb') as fh:
                    response = self.session.request(method, url, data=fh, **kwargs)
            else:
                response = self.session.request(method, url, **kwargs)
        except (ConnectionError, Timeout) as e:
            message = ' '.join(str(arg) for arg in e.args)
            logger.error(message)
            raise NetworkError(f'Connection error: {message}') from e
        reason = response.reason or HTTPStatus(response.status_code).phrase
        logger.debug(f'{response.status_code} {reason}')
        return response

    def request(self, method: str, path: str, **kwargs) -> Response:
        """Send an HTTP request using the configured `session`. A `file` keyword
        argument is opened and sent as the request body. Additional keyword
        arguments are passed to the underlying `session.request()` method.

        If the response is a 403 or 500 and credentials are configured, logs in
        once and replays the request. Raises an `AuthError` if the login fails,
        or if the replayed request is still forbidden."""
        url = self.url_for(path)
        response = self._send(method, url, **kwargs)
        if response.status_code in REAUTH_STATUSES and self.credentials is not None:
            logger.info(f'Received {response.status_code} for {method} {url}; logging in again')
            self.login()
            response = self._send(method, url, **kwargs)
            if response.status_code == HTTPStatus.FORBIDDEN:
                raise AuthError(f'Insufficient permission for {method} {url}')
        return response

    def login(self) -> str:
        """Log in with the configured credentials, and use the returned JWT for
        subsequent requests. Raises an `AuthError` if the login fails."""
        if self.credentials is None:
            raise AuthError('No username and password configured')
        jwt = local_login(self.endpoint.host, self.credentials)
        if jwt is None:
            raise AuthError(f'Invalid credentials for user {self.credentials.username}')
        self.session.auth = HTTPBearerAuth(token=jwt)
        if self.on_login is not None:
            self.on_login(jwt)
        return jwt

    def get(self, path: str, **kwargs) -> Response:
        """Send an HTTP GET request using the configured session."""
        return self.request('GET', path, **kwargs)

    def head(self, path: str, **kwargs) -> Response:
        """Send an HTTP HEAD request using the configured session."""
        return self.request('HEAD', path, **kwargs)

    def post(self, path: str, **kwargs) -> Response:
        """Send an HTTP POST request using the configured session."""
        return self.request('POST', path, **kwargs)

    def put(self, path: str, **kwargs) -> Response:
        """Send an HTTP PUT request using the configured session."""
        return self.request('PUT', path, **kwargs)

    def patch(self, path: str, **kwargs) -> Response:
        """Send an HTTP PATCH request using the configured session."""
        return self.request('PATCH', path, **kwargs)

    def delete(self, path: str, **kwargs) -> Response:
        """Send an HTTP DELETE request using the configured session."""
        return self.request('DELETE', path, **kwargs)

    def _with_destination(self, destination: str, kwargs: dict) -> dict:
        headers = dict(kwargs.pop('headers', None) or {})
        headers.setdefault('Destination', self.url_for(destination))
        return {'headers': headers, **kwargs}

    def copy(self, path: str, destination: str, **kwargs) -> Response:
        """Send an HTTP COPY request, copying the resource (and its subtree)
        at `path` to the repository path `destination`."""
        return self.request('COPY', path, **self._with_destination(destination, kwargs))

    def move(self, path: str, destination: str, **kwargs) -> Response:
        """Send an HTTP MOVE request, moving the resource (and its subtree)
        at `path` to the repository path `destination`."""
        return self.request('MOVE', path, **self._with_destination(destination, kwargs))

    def get_description(
            self,
            path: str,
            accept: str = 'application/n-triples',
            include_server_managed: bool = True
    ) -> TypedText:
        """Get the content at `path` by issuing an HTTP GET request. Defaults to
        sending an `Accept: application/n-triples` header, but that can be
        changed by setting the `accept` argument. It also by default includes
        all the server-managed triples. These can be suppressed by setting the
        `include_server_managed` argument to `False`.

        Returns a `TypedText` object containing the response body.

        Raises a `ClientError` if it does not get a success response from the
        server."""
        headers = {
            'Accept': accept,
        }
        if not include_server_managed:
            headers['Prefer'] = OMIT_SERVER_MANAGED_TRIPLES
        response = self.get(path, headers=headers)
        if not response.ok:
            logger.error(f"Unable to get {headers['Accept']} representation of {path}")
            raise ClientError(response=response)
        media_type = response.headers.get('Content-Type', accept).split(';')[0].strip()
        return TypedText(media_type, response.text)

    def is_reachable(self) -> bool:
        """Returns `True` if an HTTP HEAD request to the configured `endpoint`
        yields a non-error response, and `False` otherwise."""
        try:
            return self.head(self.endpoint.url).ok
        except NetworkError as e:
            logger.error(str(e))
            return False

    def start_transaction(self) -> str:
        """Create a transaction and store its token in the shared state. Raises a
        `TransactionError` if a transaction is already active, or the repository
        does not create one."""
        if self.transaction_token:
            raise TransactionError('Cannot nest transactions')
        logger.info('Creating transaction')
        response = self.post(self.endpoint.transaction_endpoint)
        if response.status_code != HTTPStatus.CREATED or 'Location' not in response.headers:
            raise TransactionError(f'Failed to create transaction: {response.status_code} {response.reason}')
        token = URLObject(response.headers['Location']).path.rstrip('/').split('/')[-1]
        self.state.set_transaction_token(token)
        logger.info(f'Created transaction {token}')
        return token

    def _finish_transaction(self, action: str) -> Response:
        token = self.transaction_token
        if not token:
            raise TransactionError('There is no transaction started')
        response = self.post(f'/fcr:tx/fcr:{action}')
        if response.status_code == HTTPStatus.NO_CONTENT:
            self.state.set_transaction_token(None)
            return response
        raise TransactionError(f'Failed to {action} transaction {token}: {response.status_code} {response.reason}')

    def commit_transaction(self) -> Response:
        """Commit the current transaction and clear its token. Raises a
        `TransactionError` if there is no transaction, or the commit fails."""
        logger.info(f'Committing transaction {self.transaction_token}')
        return self._finish_transaction('commit')

    def rollback_transaction(self) -> Response:
        """Roll back the current transaction and clear its token. Raises a
        `TransactionError` if there is no transaction, or the rollback fails."""
        logger.info(f'Rolling back transaction {self.transaction_token}')
        return self._finish_transaction('rollback')
