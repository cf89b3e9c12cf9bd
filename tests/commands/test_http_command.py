import argparse

import httpretty
import pytest

from fccli.cli import execute_line
from fccli.cli.commands.httpcommand import Command, parse_header
from fccli.exceptions import ValidationError

URL = 'http://localhost:9999/rest'


@pytest.mark.parametrize(
    ('header', 'expected'),
    [
        ('Accept: text/turtle', ('Accept', 'text/turtle')),
        ('Prefer:return=minimal', ('Prefer', 'return=minimal')),
        ('X-Empty:', ('X-Empty', '')),
    ]
)
def test_parse_header(header, expected):
    assert parse_header(header) == expected


@pytest.mark.parametrize('header', ['no-colon', ': value'])
def test_parse_header_invalid(header):
    with pytest.raises(ValidationError):
        parse_header(header)


@httpretty.activate
def test_get(context, capsys):
    httpretty.register_uri(
        method=httpretty.GET,
        uri=f'{URL}/a',
        status=200,
        body='<> a <http://www.w3.org/ns/ldp#Container> .',
        adding_headers={'Content-Type': 'text/turtle'},
    )
    assert execute_line(context, 'http get /a -H "Accept: text/turtle"') == 0

    assert httpretty.last_request().headers['Accept'] == 'text/turtle'
    out = capsys.readouterr().out
    assert '200 OK' in out
    assert 'Content-Type: text/turtle' in out
    assert '<> a <http://www.w3.org/ns/ldp#Container> .' in out


@httpretty.activate
def test_print_body_only(context, capsys):
    httpretty.register_uri(method=httpretty.GET, uri=f'{URL}/a', status=200, body='hello')
    assert execute_line(context, 'http GET /a -P b') == 0
    assert capsys.readouterr().out == 'hello\n'


@httpretty.activate
def test_put_data_string(context):
    httpretty.register_uri(method=httpretty.PUT, uri=f'{URL}/a', status=201)
    assert execute_line(context, "http put /a -P '' -t '<> dc:title \"A\" .'") == 0

    request = httpretty.last_request()
    assert request.headers['Content-Type'] == 'text/turtle'
    body = request.body.decode()
    assert '@prefix dc: <http://purl.org/dc/elements/1.1/> .' in body
    assert body.endswith('<> dc:title "A" .')


@httpretty.activate
def test_put_data_binary(context, tmp_path):
    file = tmp_path / 'photo.jpg'
    file.write_bytes(b'image data')
    httpretty.register_uri(method=httpretty.PUT, uri=f'{URL}/photo', status=201)
    assert execute_line(context, f"http put /photo -P '' -@ {file}") == 0

    request = httpretty.last_request()
    assert request.body == b'image data'
    assert request.headers['Content-Disposition'] == 'attachment; filename="photo.jpg"'


@pytest.mark.parametrize('method', ['copy', 'move'])
def test_destination_required(context, method):
    args = argparse.Namespace(
        method=method,
        path='/a',
        headers=[],
        print_options='hb',
        data_binary=None,
        data_string=None,
        destination=None,
    )
    with pytest.raises(ValidationError):
        Command(context=context)(args)
