from argparse import Namespace

from fccli.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='pwd',
        description='Print the current working directory in the repository'
    )
    parser.set_defaults(cmd_name='pwd')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        print(self.location.pwd())
