import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand
from fccli.repo import require_version_name

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='version',
        aliases=['versions'],
        description='Manage the versions of a resource'
    )
    parser.add_argument(
        'action',
        choices=['list', 'get', 'create', 'revert', 'delete'],
        help='version action'
    )
    parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )
    parser.add_argument(
        '-n', '--name',
        help='version name; required for all actions except "list"',
        action='store'
    )
    parser.set_defaults(cmd_name='version')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.action != 'list':
            # fail before sending any request
            require_version_name(args.name)
        path = self.resolve(args.path)

        if args.action == 'list':
            versions = self.repo.list_versions(path)
            if not versions:
                print(f'No versions of {path}')
            for version in versions:
                print(version)
        elif args.action == 'get':
            print(self.repo.get_version(path, args.name))
        elif args.action == 'create':
            self.repo.create_version(path, args.name)
            print(f'Created version {args.name} of {path}')
        elif args.action == 'revert':
            self.repo.revert_to_version(path, args.name)
            print(f'Reverted {path} to version {args.name}')
        elif args.action == 'delete':
            self.repo.delete_version(path, args.name)
            print(f'Deleted version {args.name} of {path}')
