import httpretty
import pytest
from requests.exceptions import ConnectionError

from fccli.cli import execute_line
from fccli.cli.shell import FcShell, PROMPT


def test_prompt(context):
    assert FcShell(context).prompt == PROMPT == 'fedora$ '


def test_exit(context):
    shell = FcShell(context)
    assert shell.onecmd('exit')
    assert shell.onecmd('quit')
    assert shell.onecmd('EOF')
    assert not shell.onecmd('')


def test_runs_commands(context, capsys):
    shell = FcShell(context)
    assert not shell.onecmd('pwd')
    assert capsys.readouterr().out == '/\n'


def test_error_does_not_exit(context):
    shell = FcShell(context)
    # unknown subcommand: argparse reports it, and the shell keeps going
    assert not shell.onecmd('frobnicate')


def test_help(context, capsys):
    shell = FcShell(context)
    assert not shell.onecmd('help')
    assert 'commands' in capsys.readouterr().out
    assert not shell.onecmd('help cd')
    assert 'usage: fccli cd' in capsys.readouterr().out


def test_completenames(context):
    shell = FcShell(context)
    assert shell.completenames('lo') == ['login', 'logout']
    assert 'exit' in shell.completenames('')


@httpretty.activate
def test_complete_cd(context, register_container):
    register_container('/', children=['alpha', 'beta', 'another'])
    shell = FcShell(context)
    assert shell.complete_cd('a', 'cd a', 3, 4) == ['alpha/', 'another/']


@httpretty.activate
def test_complete_cd_error(context, register_not_found):
    register_not_found('/')
    assert FcShell(context).complete_cd('', 'cd ', 3, 3) == []


def test_no_nested_shell(context):
    context.interactive = True
    assert execute_line(context, 'shell') == 1


@httpretty.activate
def test_missing_local_file_does_not_exit(context, register_not_found, tmp_path, capsys):
    register_not_found('/new')
    shell = FcShell(context)
    assert not shell.onecmd(f'create -r {tmp_path / "missing.ttl"} -y /new')
    assert not shell.onecmd('pwd')
    assert capsys.readouterr().out == '/\n'


@pytest.fixture
def shell_runs(monkeypatch):
    runs = []
    monkeypatch.setattr(FcShell, 'run', lambda self: runs.append(self))
    return runs


@httpretty.activate
def test_shell_command(context, register_container, shell_runs):
    register_container('/')
    assert execute_line(context, 'shell') == 0
    assert len(shell_runs) == 1
    assert httpretty.last_request().method == 'HEAD'


def test_shell_command_unreachable(context, monkeypatch, shell_runs):
    def raise_connection_error(*args, **kwargs):
        raise ConnectionError('Connection refused')

    monkeypatch.setattr('requests.Session.request', raise_connection_error)
    # the shell starts anyway, so settings can be changed from within it
    assert execute_line(context, 'shell') == 0
    assert len(shell_runs) == 1
