import argparse

import httpretty
import pytest

from fccli.cli import command_name, execute, execute_line, get_parser
from fccli.cli.commands import confirm
from fccli.cli.commands.iocommand import parse_ignore_steps
from fccli.exceptions import ValidationError


@pytest.mark.parametrize(
    ('module_name', 'expected'),
    [
        ('httpcommand', 'http'),
        ('iocommand', 'io'),
        ('ls', 'ls'),
    ]
)
def test_command_name(module_name, expected):
    assert command_name(module_name) == expected


def test_load_commands():
    _, command_modules = get_parser()
    assert command_modules['http'].__name__ == 'fccli.cli.commands.httpcommand'
    assert command_modules['io'].__name__ == 'fccli.cli.commands.iocommand'
    for name in ('acl', 'cd', 'collection', 'config', 'create', 'delete', 'info', 'login', 'logout',
                 'ls', 'pwd', 'script', 'shell', 'transaction', 'update', 'version'):
        assert name in command_modules


@pytest.mark.parametrize(
    ('argv', 'cmd_name'),
    [
        (['list'], 'ls'),
        (['mk', '/a'], 'create'),
        (['rm', '-y', '/a'], 'delete'),
        (['stat'], 'info'),
        (['edit', '/a'], 'update'),
        (['tx', 'start'], 'transaction'),
        (['i'], 'shell'),
    ]
)
def test_aliases(argv, cmd_name):
    parser, _ = get_parser()
    assert parser.parse_args(argv).cmd_name == cmd_name


def test_execute_unknown_command(context):
    assert execute(context, argparse.Namespace(cmd_name='bogus')) == 1


def test_execute_line_usage_error(context):
    assert execute_line(context, 'version bogus') == 2


def test_execute_line_unbalanced_quotes(context):
    assert execute_line(context, 'cd "/a') == 2


def test_execute_line_blank(context):
    assert execute_line(context, '   ') == 0


@pytest.mark.parametrize(
    ('answer', 'expected'),
    [
        ('Y', True),
        ('y', False),
        ('yes', False),
        ('', False),
        ('n', False),
    ]
)
def test_confirm(answer, expected):
    assert confirm('Continue?', prompt=lambda _: answer) is expected


def test_confirm_assume_yes():
    def no_prompt(_):
        raise AssertionError('should not prompt')

    assert confirm('Continue?', assume_yes=True, prompt=no_prompt)


def test_confirm_eof():
    def eof(_):
        raise EOFError

    assert not confirm('Continue?', prompt=eof)


def test_parse_ignore_steps():
    assert parse_ignore_steps('') == set()
    assert parse_ignore_steps('POST,delete') == {'post', 'delete'}
    with pytest.raises(ValidationError):
        parse_ignore_steps('put')


@httpretty.activate
def test_execute_line_missing_local_file(context, register_not_found, tmp_path):
    register_not_found('/new')
    assert execute_line(context, f'create -r {tmp_path / "missing.ttl"} -y /new') == 1


def test_execute_line_missing_script(context, tmp_path):
    assert execute_line(context, f'script --commit {tmp_path / "missing.txt"}') == 1
