import httpretty
import pytest
from jwcrypto.jwk import JWK
from jwcrypto.jwt import JWT
from requests.auth import HTTPBasicAuth
from requests_jwtauth import HTTPBearerAuth, JWTSecretAuth

from fccli.client.auth import ClientCertAuth, Credentials, decode_jwt_claims, get_authenticator, local_login

LOGIN_URL = 'http://localhost:9999/auth/local'


@pytest.mark.parametrize(
    ('config', 'expected_type'),
    [
        ({'AUTH_TOKEN': 'abcd'}, HTTPBearerAuth),
        ({'JWT': 'abcd'}, HTTPBearerAuth),
        ({'JWT_SECRET': 'secret'}, JWTSecretAuth),
        ({'CLIENT_CERT': 'client.pem', 'CLIENT_KEY': 'client.key'}, ClientCertAuth),
        ({'BASIC_USER': 'jdoe', 'BASIC_PASSWORD': 'secret'}, HTTPBasicAuth),
    ]
)
def test_get_authenticator(config, expected_type):
    assert isinstance(get_authenticator(config), expected_type)


def test_get_authenticator_none():
    assert get_authenticator({}) is None
    assert get_authenticator({'CLIENT_CERT': 'client.pem'}) is None


def test_auth_token_takes_precedence():
    auth = get_authenticator({'AUTH_TOKEN': 'token', 'BASIC_USER': 'jdoe', 'BASIC_PASSWORD': 'secret'})
    assert isinstance(auth, HTTPBearerAuth)


@httpretty.activate
def test_local_login():
    httpretty.register_uri(
        method=httpretty.POST,
        uri=LOGIN_URL,
        status=200,
        body='{"jwt": "abc.def.ghi"}',
        adding_headers={'Content-Type': 'application/json'},
    )
    assert local_login('http://localhost:9999', Credentials('jdoe', 'secret')) == 'abc.def.ghi'
    assert httpretty.last_request().parsed_body == {'username': ['jdoe'], 'password': ['secret']}


@httpretty.activate
def test_local_login_refused():
    httpretty.register_uri(
        method=httpretty.POST,
        uri=LOGIN_URL,
        status=401,
        body='{"error": "Unauthorized", "message": "Invalid username or password"}',
    )
    assert local_login('http://localhost:9999/', Credentials('jdoe', 'wrong')) is None


@httpretty.activate
def test_local_login_not_json():
    httpretty.register_uri(method=httpretty.POST, uri=LOGIN_URL, status=404, body='<html>Not Found</html>')
    assert local_login('http://localhost:9999', Credentials('jdoe', 'secret')) is None


def test_decode_jwt_claims():
    key = JWK.generate(kty='oct', size=256)
    token = JWT(header={'alg': 'HS256'}, claims={'sub': 'jdoe', 'role': 'fedoraUser'})
    token.make_signed_token(key)
    assert decode_jwt_claims(token.serialize()) == {'sub': 'jdoe', 'role': 'fedoraUser'}


def test_decode_unsigned_jwt_claims():
    assert decode_jwt_claims('eyJhbGciOiJub25lIn0.eyJzdWIiOiJqZG9lIn0.') == {'sub': 'jdoe'}


@pytest.mark.parametrize('token', ['', 'not-a-token', 'abc.!!!.def'])
def test_decode_jwt_claims_invalid(token):
    assert decode_jwt_claims(token) == {}
