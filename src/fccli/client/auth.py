import json
import logging
from typing import Mapping, Any, NamedTuple, Optional

import requests
from jwcrypto.jws import JWS, InvalidJWSObject  # type: ignore
from requests import PreparedRequest
from requests.auth import AuthBase, HTTPBasicAuth
from requests.exceptions import ConnectionError, Timeout
from requests_jwtauth import HTTPBearerAuth, JWTSecretAuth

from fccli.exceptions import NetworkError

logger = logging.getLogger(__name__)

LOGIN_PATH = '/auth/local'


class Credentials(NamedTuple):
    username: str
    password: str


class ClientCertAuth(AuthBase):
    def __init__(self, cert: str, key: str):
        self.cert = cert
        self.key = key

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.cert = (self.cert, self.key)
        return request


def get_authenticator(config: Mapping[str, Any]) -> Optional[AuthBase]:
    """Choose a requests authenticator from the configuration. A stored `JWT`
    (or an explicit `AUTH_TOKEN`) is sent as a bearer token; `JWT_SECRET` signs
    a fresh token for every request; `CLIENT_CERT` and `CLIENT_KEY` use TLS
    client authentication; `BASIC_USER` and `BASIC_PASSWORD` use HTTP Basic."""
    if config.get('AUTH_TOKEN'):
        return HTTPBearerAuth(token=config['AUTH_TOKEN'])
    elif config.get('JWT'):
        return HTTPBearerAuth(token=config['JWT'])
    elif config.get('JWT_SECRET'):
        return JWTSecretAuth(
            secret=config['JWT_SECRET'],
            claims={
                'sub': 'fccli',
                'iss': 'fccli',
                'role': 'fedoraAdmin'
            }
        )
    elif config.get('CLIENT_CERT') and config.get('CLIENT_KEY'):
        return ClientCertAuth(
            cert=config['CLIENT_CERT'],
            key=config['CLIENT_KEY'],
        )
    elif config.get('BASIC_USER') and config.get('BASIC_PASSWORD'):
        return HTTPBasicAuth(
            username=config['BASIC_USER'],
            password=config['BASIC_PASSWORD'],
        )
    else:
        return None


def local_login(host: str, credentials: Credentials) -> Optional[str]:
    """Log in to the authentication service on `host` with a username and
    password. Returns the issued JWT, or `None` if the service refused the
    credentials. Raises a `NetworkError` if the service cannot be reached."""
    url = str(host).rstrip('/') + LOGIN_PATH
    logger.debug(f'POST {url} (username={credentials.username})')
    try:
        response = requests.post(url, data={
            'username': credentials.username,
            'password': credentials.password,
        })
    except (ConnectionError, Timeout) as e:
        raise NetworkError(f'Unable to reach login service at {url}') from e

    try:
        body = response.json()
    except ValueError:
        logger.error(f'Login service returned {response.status_code} with a non-JSON body')
        return None

    if 'jwt' in body:
        logger.info(f'Logged in as {credentials.username}')
        return body['jwt']

    logger.error(f"Login failed: {body.get('error', response.status_code)}: {body.get('message', response.reason)}")
    return None


def decode_jwt_claims(token: str) -> dict[str, Any]:
    """Decode the claims of a JWT without verifying its signature. Returns an
    empty dictionary if the token is not well-formed.

    ```pycon
    >>> decode_jwt_claims('eyJhbGciOiJub25lIn0.eyJzdWIiOiJqZG9lIn0.')
    {'sub': 'jdoe'}
    ```
    """
    jws = JWS()
    try:
        jws.deserialize(token)
        claims = json.loads(jws.objects['payload'])
    except (InvalidJWSObject, ValueError):
        return {}
    return claims if isinstance(claims, dict) else {}
