import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand
from fccli.collection import CollectionImporter, CollectionExporter
from fccli.exceptions import ValidationError
from fccli.paths import resolve_local_path

logger = logging.getLogger(__name__)

IGNORABLE_STEPS = ('post', 'delete')


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='io',
        description='Import or export a collection to or from its filesystem representation'
    )
    io_subparsers = parser.add_subparsers(title='io commands', dest='io_cmd', required=True)

    import_parser = io_subparsers.add_parser(
        name='import',
        description='Import a collection from its filesystem representation'
    )
    import_parser.add_argument('collection_id', metavar='collection-id', help='collection identifier')
    import_parser.add_argument('root_fs_path', metavar='root-fs-path', help='directory of the collection')
    import_parser.add_argument(
        '-n', '--nested-path',
        help='only import the part of the collection at this path',
        default='',
        action='store'
    )
    import_parser.add_argument(
        '-i', '--ignore-steps',
        help='comma separated. POST: do not re-upload existing binaries, just re-apply their metadata; '
             'DELETE: do not delete repository resources that do not exist on disk',
        default='',
        action='store'
    )

    export_parser = io_subparsers.add_parser(
        name='export',
        description='Export a collection to its filesystem representation'
    )
    export_parser.add_argument('collection_id', metavar='collection-id', help='collection identifier')
    export_parser.add_argument(
        'fs_path', metavar='fs-path', nargs='?', default='.',
        help='directory to export into; defaults to the current directory'
    )
    parser.set_defaults(cmd_name='io')


def parse_ignore_steps(value: str) -> set[str]:
    """
    ```pycon
    >>> sorted(parse_ignore_steps('POST, delete'))
    ['delete', 'post']
    ```
    """
    steps = {step.strip().lower() for step in value.split(',') if step.strip()}
    unknown = steps - set(IGNORABLE_STEPS)
    if unknown:
        raise ValidationError(f"Unknown step(s) to ignore: {', '.join(sorted(unknown))}")
    return steps


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.io_cmd == 'import':
            steps = parse_ignore_steps(args.ignore_steps)
            importer = CollectionImporter(
                repo=self.repo,
                location=self.location,
                collection_id=args.collection_id,
                fs_root=resolve_local_path(args.root_fs_path),
                nested_path=args.nested_path,
                ignore_post='post' in steps,
                ignore_removal='delete' in steps,
            )
            stats = importer.run()
            print(f'Imported {stats}')
        else:
            exporter = CollectionExporter(
                repo=self.repo,
                location=self.location,
                collection_id=args.collection_id,
                fs_root=resolve_local_path(args.fs_path),
            )
            stats = exporter.run()
            print(f'Exported {stats} to {exporter.target_dir}')
