import logging
from argparse import Namespace
from pathlib import Path

from fccli.cli.commands import BaseCommand, confirm
from fccli.editor import edit_text
from fccli.exceptions import ValidationError
from fccli.paths import resolve_local_path
from fccli.repo import description_path

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='update',
        aliases=['edit'],
        description='Update the description of a resource, or replace the content of a binary. '
                    'With no files given, edit the current description in a text editor.'
    )
    parser.add_argument(
        '-b', '--binary',
        help='local file with the new content of a binary resource',
        action='store'
    )
    parser.add_argument(
        '-f', '--filename',
        help='filename to record for the binary; defaults to the local file name',
        action='store'
    )
    parser.add_argument(
        '-r', '--rdf',
        help='local turtle file with the new description of the resource',
        action='store'
    )
    parser.add_argument(
        '-e', '--editor',
        help='text editor command; defaults to $VISUAL or $EDITOR',
        action='store'
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
    parser.set_defaults(cmd_name='update')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        info = self.location.info(args.path)

        if args.binary:
            if not info.is_binary:
                raise ValidationError(f'Location {info.path} is a container, not a binary file')
            self.repo.put_binary(info.path, resolve_local_path(args.binary), args.filename)
            print(f'Replaced content of {info.path}')
            if not args.rdf:
                return

        path = description_path(info)
        old_turtle = self.repo.get_turtle(path)

        if args.rdf:
            new_turtle = Path(resolve_local_path(args.rdf)).read_text()
        else:
            new_turtle = edit_text(old_turtle, editor=args.editor)
            if new_turtle == old_turtle:
                logger.info('No changes made')
                return
            print(new_turtle)
            if not confirm(f'Update {path} with this description?', args.yes):
                logger.info('Update cancelled')
                return

        if self.repo.update_description(path, new_turtle, old_turtle) is not None:
            print(f'Updated {path}')
