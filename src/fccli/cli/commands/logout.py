from argparse import Namespace

from fccli.cli.commands import BaseCommand


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='logout',
        description='Forget the stored token and credentials'
    )
    parser.set_defaults(cmd_name='logout')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        self.config.unset('JWT', 'USERNAME', 'PASSWORD')
        self.context.reset_client()
        print('Logged out')
