import logging
from argparse import Namespace
from pathlib import Path

from fccli.cli.commands import BaseCommand, confirm
from fccli.editor import edit_text
from fccli.exceptions import ValidationError
from fccli.namespaces import DEFAULT_PREFIXES
from fccli.paths import resolve_local_path
from fccli.rdf import prefix_declarations
from fccli.repo import METADATA_SUFFIX

logger = logging.getLogger(__name__)

CONTAINER_TEMPLATE = '''<> dc:title "A new container" ;
   dc:description "No description provided" .
'''


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='create',
        aliases=['mk'],
        description='Create a container or binary resource. With no files given, '
                    'edit the description of a new container in a text editor.'
    )
    parser.add_argument(
        '-b', '--binary',
        help='local file to upload as a binary resource',
        action='store'
    )
    parser.add_argument(
        '-f', '--filename',
        help='filename to record for the binary; defaults to the local file name',
        action='store'
    )
    parser.add_argument(
        '-r', '--rdf',
        help='local turtle file with the description of the new resource',
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
        'path',
        help='repository path of the new resource'
    )
    parser.set_defaults(cmd_name='create')


class Command(BaseCommand):
    def template(self) -> str:
        prefixes = {'dc': DEFAULT_PREFIXES['dc'], **self.repo.global_prefixes}
        return prefix_declarations(prefixes) + '\n\n' + CONTAINER_TEMPLATE

    def __call__(self, args: Namespace):
        path = self.resolve(args.path)
        if self.repo.exists(path):
            raise ValidationError(f'{path} already exists')

        turtle = Path(resolve_local_path(args.rdf)).read_text() if args.rdf else None

        if args.binary:
            self.repo.put_binary(path, resolve_local_path(args.binary), args.filename)
            print(f'Created binary {path}')
            if turtle:
                metadata_path = path + METADATA_SUFFIX
                self.repo.update_description(metadata_path, turtle, self.repo.get_turtle(metadata_path))
            return

        if turtle is None:
            turtle = edit_text(self.template(), editor=args.editor)
            print(turtle)
            if not confirm(f'Create container {path} with this description?', args.yes):
                logger.info('Create cancelled')
                return

        self.repo.create_container(path, turtle)
        print(f'Created container {path}')
