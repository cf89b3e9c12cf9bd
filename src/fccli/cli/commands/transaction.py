import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='transaction',
        aliases=['tx'],
        description='Start, commit, or roll back a repository transaction. While a transaction is '
                    'active, all requests are made within it.'
    )
    parser.add_argument(
        'action',
        choices=['start', 'commit', 'rollback'],
        help='transaction action'
    )
    parser.set_defaults(cmd_name='transaction')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.action == 'start':
            token = self.client.start_transaction()
            print(f'Started transaction {token}')
        elif args.action == 'commit':
            token = self.client.transaction_token
            self.client.commit_transaction()
            print(f'Committed transaction {token}')
        else:
            token = self.client.transaction_token
            self.client.rollback_transaction()
            print(f'Rolled back transaction {token}')
