import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand
from fccli.repo import description_path

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='info',
        aliases=['stat'],
        description='Show the type, services, and description of a resource'
    )
    parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )
    parser.set_defaults(cmd_name='info')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        info = self.location.info(args.path)
        print(f'Path: {info.path}')
        print(f'Type: {info.type.value}')

        if info.is_binary:
            print('Binary File:')
            for key, value in info.file.items():
                print(f'  {key}: {value}')
            content_type = info.headers.get('Content-Type')
            if content_type:
                print(f'  content-type: {content_type}')

        if info.services:
            print('Services:')
            for service in info.services:
                print(f'  {service}')

        if info.described_by:
            print(f'Described By: {info.described_by}')

        print()
        print(self.repo.get_turtle(description_path(info)))
