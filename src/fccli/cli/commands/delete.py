import logging
import posixpath
from argparse import Namespace

from fccli.cli.commands import BaseCommand, confirm
from fccli.exceptions import NotFoundError, ValidationError
from fccli.repo import description_path

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='delete',
        aliases=['del', 'rm'],
        description='Permanently delete a resource, and everything it contains'
    )
    parser.add_argument(
        '-y', '--yes',
        help='do not ask for confirmation',
        action='store_true'
    )
    parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )
    parser.set_defaults(cmd_name='delete')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        info = self.location.info(args.path)
        if info.path == '/':
            raise ValidationError('Refusing to delete the repository root')

        if not args.yes:
            print(self.repo.get_turtle(description_path(info)))
        if not confirm(f'Are you sure you want to permanently delete {info.path}?', args.yes):
            logger.info('Delete cancelled')
            return

        self.repo.delete(info.path, permanent=True)
        print(f'Deleted {info.path}')

        # don't leave the working directory pointing at a deleted container
        cwd = self.location.pwd()
        if cwd == info.path or cwd.startswith(info.path + '/'):
            self.leave(posixpath.dirname(info.path))

    def leave(self, parent: str):
        try:
            self.location.cd(parent)
        except NotFoundError:
            logger.warning(f'{parent} does not exist, changing to /')
            self.context.session.set_cwd('/')
