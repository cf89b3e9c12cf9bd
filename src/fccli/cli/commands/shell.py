import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand
from fccli.cli.shell import FcShell
from fccli.exceptions import ValidationError

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='shell',
        aliases=['interactive', 'i'],
        description='Start an interactive shell'
    )
    parser.set_defaults(cmd_name='shell')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if self.context.interactive:
            raise ValidationError('Already in the interactive shell')
        if not self.client.is_reachable():
            logger.warning(f'Repository at {self.context.endpoint.url} is not reachable')
        FcShell(self.context).run()
