import logging
from argparse import Namespace

import yaml

from fccli.cli.commands import BaseCommand

logger = logging.getLogger(__name__)

CONNECTION_KEYS = ('HOST', 'BASE_PATH', 'USERNAME', 'PASSWORD', 'JWT')


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='config',
        description='Show or change the configuration'
    )
    config_subparsers = parser.add_subparsers(title='config commands', dest='config_cmd')

    set_parser = config_subparsers.add_parser(
        name='set',
        description='Set a configuration attribute, e.g. host or base-path'
    )
    set_parser.add_argument('attribute', help='attribute name')
    set_parser.add_argument('value', help='new value')

    prefix_parser = config_subparsers.add_parser(
        name='prefix',
        description='Show or change the global prefixes available to all turtle documents'
    )
    prefix_subparsers = prefix_parser.add_subparsers(title='prefix commands', dest='prefix_cmd')

    add_parser = prefix_subparsers.add_parser(name='add', description='Add or replace a global prefix')
    add_parser.add_argument('prefix', help='prefix name, e.g. "dcterms"')
    add_parser.add_argument('url', help='namespace URL')

    remove_parser = prefix_subparsers.add_parser(name='remove', aliases=['rm'], description='Remove a global prefix')
    remove_parser.add_argument('prefix', help='prefix name')

    parser.set_defaults(cmd_name='config', config_cmd=None, prefix_cmd=None)


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.config_cmd == 'set':
            self.config.set(args.attribute, args.value)
            logger.info(f'Set {args.attribute} in {self.config.path}')
            if args.attribute.replace('-', '_').upper() in CONNECTION_KEYS:
                self.context.reset_client()
        elif args.config_cmd == 'prefix':
            if args.prefix_cmd == 'add':
                self.config.add_prefix(args.prefix, args.url)
                self.context.reset_client()
            elif args.prefix_cmd in ('remove', 'rm'):
                self.config.remove_prefix(args.prefix)
                self.context.reset_client()
            for name, url in self.config.global_prefixes.items():
                print(f'{name}: {url}')
        else:
            print(f'# {self.config.path}')
            print(yaml.safe_dump(self.config.as_dict(), default_flow_style=False), end='')
