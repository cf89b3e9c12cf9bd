#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import copy
import logging
import logging.config
import os
import shlex
import sys
from argparse import ArgumentParser, Namespace
from datetime import datetime
from importlib import import_module
from pkgutil import iter_modules
from types import ModuleType

import yaml

from fccli.cli import commands
from fccli.cli.context import FcContext, get_version
from fccli.client import ClientError, TransactionError
from fccli.config import Config
from fccli.exceptions import ConfigError, FcCliError
from fccli.repo import RepositoryError
from fccli.utils import DEFAULT_LOGGING_OPTIONS

logger = logging.getLogger(__name__)
now = datetime.utcnow().strftime('%Y%m%d%H%M%S')

COMMAND_ERRORS = (FcCliError, ClientError, TransactionError, RepositoryError, OSError)
"""Errors that abort a single command, and are reported at the command boundary."""


def command_name(module_name: str) -> str:
    """Command name for a command module. A "command" suffix is dropped, so
    that commands can be named after reserved words or stdlib modules.

    ```pycon
    >>> command_name('iocommand')
    'io'

    >>> command_name('ls')
    'ls'
    ```
    """
    if module_name.endswith('command') and module_name != 'command':
        return module_name[:-len('command')]
    return module_name


def load_commands(subparsers) -> dict[str, ModuleType]:
    # load all defined subcommands from the fccli.cli.commands package, using
    # introspection
    command_modules = {}
    for finder, name, ispkg in iter_modules(commands.__path__):
        module = import_module(commands.__name__ + '.' + name)
        if hasattr(module, 'configure_cli'):
            module.configure_cli(subparsers)
            command_modules[command_name(name)] = module
    return command_modules


def get_parser() -> tuple[ArgumentParser, dict[str, ModuleType]]:
    parser = ArgumentParser(
        prog='fccli',
        description='Command line and interactive shell client for a Fedora repository.'
    )
    parser.set_defaults(cmd_name=None)

    parser.add_argument(
        '-c', '--config',
        help='Path to configuration file. Defaults to .fccli in the current or home directory.',
        action='store',
        dest='config_file',
    )
    parser.add_argument(
        '-V', '--version',
        help='Print version and exit.',
        action='version',
        version=get_version()
    )
    parser.add_argument(
        '--host',
        help='repository host, e.g. http://localhost:8080',
        action='store'
    )
    parser.add_argument(
        '-b', '--base-path',
        help='path to the REST API on the host, e.g. /rest',
        dest='base_path',
        action='store'
    )
    parser.add_argument(
        '-u', '--username',
        help='username for logging in to the repository',
        action='store'
    )
    parser.add_argument(
        '-p', '--password',
        help='password for logging in to the repository',
        action='store'
    )
    parser.add_argument(
        '-v', '--verbose',
        help='increase the verbosity of the status output',
        action='store_true'
    )
    parser.add_argument(
        '-q', '--quiet',
        help='decrease the verbosity of the status output',
        action='store_true'
    )

    subparsers = parser.add_subparsers(title='commands')
    command_modules = load_commands(subparsers)
    return parser, command_modules


def configure_logging(config: Config, args: Namespace):
    if config.get('LOGGING_CONFIG'):
        with open(config.get('LOGGING_CONFIG'), 'r') as logging_config_file:
            logging_options = yaml.safe_load(logging_config_file)
    else:
        logging_options = copy.deepcopy(DEFAULT_LOGGING_OPTIONS)

    handlers = logging_options.get('handlers', {})
    if 'file' in handlers:
        log_dirname = config.get('LOG_DIR')
        if log_dirname:
            if not os.path.isdir(log_dirname):
                os.makedirs(log_dirname)
            log_filename = 'fccli.{0}.{1}.log'.format(args.cmd_name, now)
            handlers['file']['filename'] = os.path.join(log_dirname, log_filename)
        else:
            # no log directory, so log to the console only
            del handlers['file']
            for logger_options in logging_options.get('loggers', {}).values():
                if 'file' in logger_options.get('handlers', []):
                    logger_options['handlers'].remove('file')

    # manipulate console verbosity
    if 'console' in handlers:
        if args.verbose:
            handlers['console']['level'] = 'DEBUG'
        elif args.quiet:
            handlers['console']['level'] = 'WARNING'

    logging.config.dictConfig(logging_options)


def execute(context: FcContext, args: Namespace) -> int:
    """Run the command selected by `args`. Errors are logged here, and never
    propagate past this point. Returns the exit status."""
    command_module = context.command_modules.get(args.cmd_name)
    if command_module is None or not hasattr(command_module, 'Command'):
        logger.error(f'Unable to execute command {args.cmd_name}')
        return 1
    try:
        command = command_module.Command(context=context)
        command(args)
    except COMMAND_ERRORS as e:
        # something failed, report it and move on
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        # aborted due to Ctrl+C
        logger.warning('Interrupted')
        return 2
    return 0


def execute_line(context: FcContext, line: str) -> int:
    """Parse one line of input with the command parser, and run it."""
    try:
        argv = shlex.split(line)
    except ValueError as e:
        logger.error(f'Unable to parse command: {e}')
        return 2
    if not argv:
        return 0
    try:
        args = context.parser.parse_args(argv)
    except SystemExit as e:
        # argparse has already printed a usage message
        return e.code if isinstance(e.code, int) else 2
    if args.cmd_name is None:
        context.parser.print_help()
        return 0
    context.args = args
    return execute(context, args)


def main(argv: list[str] = None):
    """Parse args and handle options."""
    parser, command_modules = get_parser()

    # parse command line args
    args = parser.parse_args(argv)

    # if no subcommand was selected, display the help
    if args.cmd_name is None:
        parser.print_help()
        sys.exit(0)

    try:
        config = Config.load(
            args.config_file,
            overrides={
                'HOST': args.host,
                'BASE_PATH': args.base_path,
                'USERNAME': args.username,
                'PASSWORD': args.password,
            },
        )
    except ConfigError as e:
        print(f'Configuration error: {e}', file=sys.stderr)
        sys.exit(1)

    configure_logging(config, args)
    logger.debug(f'Loaded configuration from {config.path}')

    context = FcContext(config=config, args=args, parser=parser, command_modules=command_modules)
    sys.exit(execute(context, args))


if __name__ == "__main__":
    main()
