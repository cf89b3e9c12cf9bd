import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='ls',
        aliases=['list'],
        description='List the children of a container'
    )
    parser.add_argument(
        'path', nargs='?',
        help='Repository path to list. Defaults to the current working directory.'
    )
    parser.set_defaults(cmd_name='ls')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        listing = self.location.list_children(args.path)
        if listing.is_binary:
            logger.info(f'{self.resolve(args.path)} is a binary file')
            return
        for child in listing:
            print(child)
