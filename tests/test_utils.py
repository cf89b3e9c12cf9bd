import hashlib

import pytest

from fccli.utils import (
    envsubst,
    parse_content_disposition,
    parse_links,
    rdf_media_type,
    sha256_digest,
)


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ('${FOO}', 'foo'),
        ('${FOO}/${BAR}', 'foo/bar'),
        ('${MISSING}', '${MISSING}'),
        (['${FOO}', 'baz'], ['foo', 'baz']),
        ({'a': '${BAR}'}, {'a': 'bar'}),
        (1, 1),
    ]
)
def test_envsubst(value, expected):
    assert envsubst(value, {'FOO': 'foo', 'BAR': 'bar'}) == expected


@pytest.mark.parametrize(
    ('filename', 'expected'),
    [
        ('index.ttl', 'text/turtle'),
        ('data.JSON', 'application/ld+json'),
        ('triples.nt', 'application/n-triples'),
        ('doc.xml', 'application/rdf+xml'),
        ('doc.n3', 'text/n3'),
        ('notes.txt', 'text/plain'),
        ('photo.jpg', None),
        ('README', None),
    ]
)
def test_rdf_media_type(filename, expected):
    assert rdf_media_type(filename) == expected


def test_sha256_digest(tmp_path):
    file = tmp_path / 'data.bin'
    file.write_bytes(b'\x00\x01binary data')
    assert sha256_digest(file) == hashlib.sha256(b'\x00\x01binary data').hexdigest()


def test_parse_content_disposition():
    assert parse_content_disposition('attachment; filename="photo.jpg"; size=1024') == {
        'filename': 'photo.jpg',
        'size': '1024',
    }


def test_parse_content_disposition_missing():
    assert parse_content_disposition(None) == {}


def test_parse_links_keeps_repeated_relations():
    links = parse_links(
        '<http://www.w3.org/ns/ldp#Resource>;rel="type", '
        '<http://www.w3.org/ns/ldp#NonRDFSource>;rel="type", '
        '<http://localhost:9999/rest/a/fcr:metadata>;rel="describedby"'
    )
    assert links == {
        'type': ['http://www.w3.org/ns/ldp#Resource', 'http://www.w3.org/ns/ldp#NonRDFSource'],
        'describedby': ['http://localhost:9999/rest/a/fcr:metadata'],
    }
