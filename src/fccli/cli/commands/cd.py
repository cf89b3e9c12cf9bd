from argparse import Namespace

from fccli.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='cd',
        description='Change the current working directory in the repository'
    )
    parser.add_argument(
        'path', nargs='?', default='/',
        help='Container to change to. Defaults to the repository root.'
    )
    parser.set_defaults(cmd_name='cd')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        self.location.cd(args.path)
