import httpretty
import pytest

from fccli.cli import execute_line

URL = 'http://localhost:9999/rest'
TITLE = 'http://purl.org/dc/elements/1.1/title'


@pytest.fixture
def no_editor(monkeypatch):
    """Stand-in for the text editor that returns the text unchanged."""
    for module in ('create', 'update'):
        monkeypatch.setattr(f'fccli.cli.commands.{module}.edit_text', lambda text, editor=None: text)


@httpretty.activate
def test_create_from_template(context, no_editor, register_not_found):
    register_not_found('/new')
    httpretty.register_uri(method=httpretty.PUT, uri=f'{URL}/new', status=201)

    assert execute_line(context, 'mk -y /new') == 0

    body = httpretty.last_request().body.decode()
    assert '@prefix dc: <http://purl.org/dc/elements/1.1/> .' in body
    assert 'dc:title "A new container"' in body


@httpretty.activate
def test_create_cancelled(context, no_editor, register_not_found, monkeypatch):
    register_not_found('/new')
    monkeypatch.setattr('builtins.input', lambda _: 'n')

    assert execute_line(context, 'create /new') == 0
    assert httpretty.last_request().method == 'HEAD'


@httpretty.activate
def test_create_from_file(context, register_not_found, tmp_path):
    rdf = tmp_path / 'new.ttl'
    rdf.write_text('<> dc:title "From a file" .')
    register_not_found('/new')
    httpretty.register_uri(method=httpretty.PUT, uri=f'{URL}/new', status=201)

    assert execute_line(context, f'create -r {rdf} /new') == 0
    assert 'From a file' in httpretty.last_request().body.decode()


@httpretty.activate
def test_create_binary(context, register_not_found, tmp_path):
    file = tmp_path / 'photo.jpg'
    file.write_bytes(b'image data')
    register_not_found('/photo')
    httpretty.register_uri(method=httpretty.PUT, uri=f'{URL}/photo', status=201)

    assert execute_line(context, f'create -b {file} -f scan.jpg /photo') == 0

    request = httpretty.last_request()
    assert request.body == b'image data'
    assert request.headers['Content-Disposition'] == 'attachment; filename="scan.jpg"'


@httpretty.activate
def test_create_existing(context, register_container):
    register_container('/a')
    assert execute_line(context, 'create -y /a') == 1


@httpretty.activate
def test_create_invalid_turtle(context, register_not_found, tmp_path):
    rdf = tmp_path / 'bad.ttl'
    rdf.write_text('<> dc:title "X" .\n<> dc:title .\n')
    register_not_found('/new')

    assert execute_line(context, f'create -r {rdf} /new') == 1
    assert httpretty.last_request().method == 'HEAD'


@httpretty.activate
def test_update_from_file(context, register_container, tmp_path):
    register_container('/a', triples=[f'<{URL}/a> <{TITLE}> "Old" .'])
    httpretty.register_uri(method=httpretty.PATCH, uri=f'{URL}/a', status=204)
    rdf = tmp_path / 'a.ttl'
    rdf.write_text('<> dc:title "New" .')

    assert execute_line(context, f'update -r {rdf} /a') == 0

    body = httpretty.last_request().body.decode()
    assert f'DELETE {{\n  <> <{TITLE}> "Old" .\n}}' in body
    assert f'INSERT {{\n  <> <{TITLE}> "New" .\n}}' in body


@httpretty.activate
def test_update_invalid_iri(context, register_container, tmp_path):
    register_container('/a', triples=[f'<{URL}/a> <{TITLE}> "Old" .'])
    rdf = tmp_path / 'a.ttl'
    rdf.write_text('<> <has space> "New" .')

    assert execute_line(context, f'update -r {rdf} /a') == 1
    assert httpretty.last_request().method == 'GET'


@httpretty.activate
def test_update_unchanged(context, no_editor, register_container):
    register_container('/a', triples=[f'<{URL}/a> <{TITLE}> "Old" .'])
    assert execute_line(context, 'edit /a') == 0
    assert httpretty.last_request().method == 'GET'


@httpretty.activate
def test_update_binary_of_container(context, register_container, tmp_path):
    file = tmp_path / 'photo.jpg'
    file.write_bytes(b'image data')
    register_container('/a')
    assert execute_line(context, f'update -b {file} /a') == 1


@httpretty.activate
def test_delete(context, register_container):
    register_container('/a')
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a', status=204)
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a/fcr:tombstone', status=204)

    assert execute_line(context, 'rm -y /a') == 0

    assert httpretty.last_request().path == '/rest/a/fcr:tombstone'
    assert context.session.cwd == '/'


@httpretty.activate
def test_delete_moves_cwd_to_parent(context, register_container):
    register_container('/a')
    register_container('/a/b')
    register_container('/a/b/c')
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a/b', status=204)
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a/b/fcr:tombstone', status=204)
    execute_line(context, 'cd /a/b/c')

    assert execute_line(context, 'rm -y /a/b') == 0

    # the parent is checked before it becomes the working directory
    assert httpretty.last_request().method == 'HEAD'
    assert httpretty.last_request().path == '/rest/a'
    assert context.session.cwd == '/a'


@httpretty.activate
def test_delete_missing_parent(context, register_container, register_not_found):
    register_not_found('/a')
    register_container('/a/b')
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a/b', status=204)
    httpretty.register_uri(method=httpretty.DELETE, uri=f'{URL}/a/b/fcr:tombstone', status=204)
    execute_line(context, 'cd /a/b')

    assert execute_line(context, 'rm -y /a/b') == 0
    assert context.session.cwd == '/'


@httpretty.activate
def test_delete_declined(context, register_container, monkeypatch):
    register_container('/a', triples=[f'<{URL}/a> <{TITLE}> "A" .'])
    monkeypatch.setattr('builtins.input', lambda _: 'y')

    assert execute_line(context, 'delete /a') == 0
    assert httpretty.last_request().method == 'GET'


@httpretty.activate
def test_delete_root(context, register_container):
    register_container('/')
    assert execute_line(context, 'rm -y /') == 1
