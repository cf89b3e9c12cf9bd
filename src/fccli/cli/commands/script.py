import logging
from argparse import Namespace
from pathlib import Path

from fccli.cli import execute_line
from fccli.cli.commands import BaseCommand, confirm
from fccli.exceptions import ValidationError
from fccli.paths import resolve_local_path

logger = logging.getLogger(__name__)

DISALLOWED_COMMANDS = ('script', 'transaction', 'tx', 'shell', 'interactive', 'i')


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='script',
        description='Run the commands in a file, one per line, within a single transaction. '
                    'Blank lines and lines starting with "#" are skipped.'
    )
    parser.add_argument(
        'file',
        help='local file of commands'
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        '--commit',
        help='commit the transaction without asking',
        action='store_const',
        const='commit',
        dest='finish'
    )
    group.add_argument(
        '--rollback',
        help='roll back the transaction without asking',
        action='store_const',
        const='rollback',
        dest='finish'
    )
    parser.set_defaults(cmd_name='script', finish=None)


def read_script(file: str) -> list[str]:
    lines = []
    for line in Path(file).read_text().splitlines():
        line = line.strip()
        if line and not line.startswith('#'):
            lines.append(line)
    return lines


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if self.context.interactive:
            raise ValidationError('Scripts cannot be run from the interactive shell')
        lines = read_script(resolve_local_path(args.file))

        token = self.client.start_transaction()
        logger.info(f'Running {len(lines)} command(s) from {args.file} in transaction {token}')
        failures = 0
        try:
            for number, line in enumerate(lines, 1):
                logger.info(f'[{number}] {line}')
                if line.split()[0] in DISALLOWED_COMMANDS:
                    logger.error(f'[{number}] Command not allowed in a script: {line}')
                    failures += 1
                    continue
                if execute_line(self.context, line) != 0:
                    failures += 1
        except KeyboardInterrupt:
            logger.warning('Interrupted; rolling back')
            self.client.rollback_transaction()
            raise

        if failures:
            logger.warning(f'{failures} command(s) failed')

        finish = args.finish
        if finish is None:
            finish = 'commit' if confirm(f'Commit transaction {token}?') else 'rollback'
        if finish == 'commit':
            self.client.commit_transaction()
            print(f'Committed transaction {token}')
        else:
            self.client.rollback_transaction()
            print(f'Rolled back transaction {token}')
