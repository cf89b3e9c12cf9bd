import logging
from argparse import Namespace

from fccli.acl import ACL_ROOT
from fccli.cli.commands import BaseCommand, confirm
from fccli.collection import (
    CollectionAccess,
    add_resource,
    collection_path,
    create_collection,
    delete_collection,
    delete_resource,
    parse_mode,
)
from fccli.exceptions import NotFoundError
from fccli.paths import resolve_local_path

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='collection',
        description='Manage collections, their resources, and who has access to them'
    )
    collection_subparsers = parser.add_subparsers(title='collection commands', dest='collection_cmd', required=True)

    create_parser = collection_subparsers.add_parser(
        name='create',
        description='Create a collection. Metadata is either a path to a local turtle file, or turtle text.'
    )
    create_parser.add_argument('id', help='collection identifier')
    create_parser.add_argument('metadata', nargs='?', help='turtle file or text')
    create_parser.set_defaults(action='create')

    delete_parser = collection_subparsers.add_parser(
        name='delete',
        description='Permanently delete a collection'
    )
    delete_parser.add_argument(
        '-f', '--force',
        help='do not ask for confirmation',
        action='store_true'
    )
    delete_parser.add_argument('id', help='collection identifier')
    delete_parser.set_defaults(action='delete')

    configure_resource_cli(collection_subparsers)
    configure_acl_cli(collection_subparsers)
    parser.set_defaults(cmd_name='collection')


def configure_resource_cli(collection_subparsers):
    resource_parser = collection_subparsers.add_parser(
        name='resource',
        description='Add or delete single resources of a collection'
    )
    resource_subparsers = resource_parser.add_subparsers(title='resource commands', dest='resource_cmd', required=True)

    add_parser = resource_subparsers.add_parser(
        name='add',
        description='Upload a local file to a collection'
    )
    add_parser.add_argument(
        '-m', '--metadata',
        help='local turtle file with the description of the resource; '
             'defaults to <file>.ttl, if it exists',
        action='store'
    )
    add_parser.add_argument(
        '-t', '--type',
        help='type of the resource; schema.org types may be given by name alone, '
             'e.g. MediaObject. May be repeated.',
        dest='types',
        action='append',
        default=[]
    )
    add_parser.add_argument('collection_id', help='collection identifier')
    add_parser.add_argument('file', help='local file to upload')
    add_parser.add_argument('id', nargs='?', help='path of the resource within the collection; defaults to the file name')
    add_parser.set_defaults(action='add_resource')

    delete_parser = resource_subparsers.add_parser(
        name='delete',
        description='Permanently delete a resource of a collection'
    )
    delete_parser.add_argument(
        '-f', '--force',
        help='do not ask for confirmation',
        action='store_true'
    )
    delete_parser.add_argument('collection_id', help='collection identifier')
    delete_parser.add_argument('id', help='path of the resource within the collection')
    delete_parser.set_defaults(action='delete_resource')


def configure_acl_cli(collection_subparsers):
    acl_parser = collection_subparsers.add_parser(
        name='acl',
        description='Show or change the access to a collection'
    )
    acl_parser.add_argument(
        '--root',
        help='root of the ACL resources; defaults to /acl',
        default=ACL_ROOT,
        action='store'
    )
    acl_subparsers = acl_parser.add_subparsers(title='collection acl commands', dest='acl_cmd', required=True)

    show_parser = acl_subparsers.add_parser(
        name='show',
        description='Show all agent and group access to a collection'
    )
    show_parser.add_argument('collection_id', help='collection identifier')
    show_parser.set_defaults(action='show_access')

    user_parser = acl_subparsers.add_parser(
        name='user',
        description='Give or remove access for single agents'
    )
    user_subparsers = user_parser.add_subparsers(title='user commands', dest='user_cmd', required=True)
    user_add_parser = user_subparsers.add_parser(
        name='add',
        description='Give an agent access to a collection. For public access, use PUBLIC as the agent.'
    )
    user_add_parser.add_argument('collection_id', help='collection identifier')
    user_add_parser.add_argument('agent', help='agent name, or PUBLIC')
    user_add_parser.add_argument('mode', help='access mode: r, w, or rw')
    user_add_parser.set_defaults(action='add_user')
    user_remove_parser = user_subparsers.add_parser(
        name='remove',
        description='Remove all access an agent has to a collection'
    )
    user_remove_parser.add_argument('collection_id', help='collection identifier')
    user_remove_parser.add_argument('agent', help='agent name, or PUBLIC')
    user_remove_parser.set_defaults(action='remove_user')

    group_parser = acl_subparsers.add_parser(
        name='group',
        description='Manage the groups of a collection, and their access'
    )
    group_subparsers = group_parser.add_subparsers(title='group commands', dest='group_cmd', required=True)
    group_add_parser = group_subparsers.add_parser(
        name='add',
        description='Create a group in a collection, and give it access'
    )
    group_add_parser.add_argument(
        '-a', '--agent',
        help='agent to add to the group. May be repeated.',
        dest='agents',
        action='append',
        default=[]
    )
    group_add_parser.add_argument('collection_id', help='collection identifier')
    group_add_parser.add_argument('name', help='group name')
    group_add_parser.add_argument('mode', help='access mode: r, w, or rw')
    group_add_parser.set_defaults(action='add_group')

    group_modify_parser = group_subparsers.add_parser(
        name='modify',
        description="Change a group's members"
    )
    group_modify_parser.add_argument(
        '-a', '--add-agent',
        help='agent to add to the group. May be repeated.',
        dest='add_agents',
        action='append',
        default=[]
    )
    group_modify_parser.add_argument(
        '-r', '--remove-agent',
        help='agent to remove from the group. May be repeated.',
        dest='remove_agents',
        action='append',
        default=[]
    )
    group_modify_parser.add_argument('collection_id', help='collection identifier')
    group_modify_parser.add_argument('name', help='group name')
    group_modify_parser.set_defaults(action='modify_group')

    group_remove_parser = group_subparsers.add_parser(
        name='remove',
        description='Delete a group, and all access it has to a collection'
    )
    group_remove_parser.add_argument('collection_id', help='collection identifier')
    group_remove_parser.add_argument('name', help='group name')
    group_remove_parser.set_defaults(action='remove_group')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        getattr(self, args.action)(args)

    def access(self, args: Namespace) -> CollectionAccess:
        return CollectionAccess(self.repo, args.collection_id, acl_root=args.root)

    def create(self, args: Namespace):
        url = create_collection(self.repo, args.id, args.metadata)
        print(f'New collection created at: {url}')

    def delete(self, args: Namespace):
        if not confirm(f'Are you sure you want to permanently delete collection {args.id}?', args.force):
            logger.info('Delete cancelled')
            return
        delete_collection(self.repo, args.id)
        print(f'Collection {args.id} deleted ({collection_path(args.id)})')

    def add_resource(self, args: Namespace):
        path = add_resource(
            self.repo,
            args.collection_id,
            resolve_local_path(args.file),
            resource_id=args.id,
            metadata=resolve_local_path(args.metadata) if args.metadata else None,
            types=args.types,
        )
        print(f'Item {path} added to collection {args.collection_id}')

    def delete_resource(self, args: Namespace):
        if not confirm(f'Are you sure you want to permanently delete {args.id} from {args.collection_id}?', args.force):
            logger.info('Delete cancelled')
            return
        path = delete_resource(self.repo, args.collection_id, args.id)
        print(f'Deleted {path}')

    def show_access(self, args: Namespace):
        access = self.access(args)
        grants = access.grants()
        if not grants:
            print(f'No access rules for collection {args.collection_id}')
            return
        for grant in grants:
            modes = ', '.join(mode.lower() for mode in sorted(grant.modes)) or 'none'
            if grant.is_group:
                print(f'group {grant.agent} ({self.group_members(access, grant.agent)}): {modes}')
            else:
                print(f'{grant.agent}: {modes}')

    @staticmethod
    def group_members(access: CollectionAccess, group_path: str) -> str:
        name = group_path.rsplit('/', 1)[-1]
        if group_path != access.group_path(name):
            # a group that belongs to some other collection
            return 'external'
        try:
            return ', '.join(access.members(name)) or 'no members'
        except NotFoundError:
            return 'missing'

    def add_user(self, args: Namespace):
        modes = parse_mode(args.mode)
        self.access(args).grant(args.agent, modes)
        print(f'Gave {args.agent} {args.mode} access to collection {args.collection_id}')

    def remove_user(self, args: Namespace):
        if self.access(args).revoke(args.agent):
            print(f'Removed all access {args.agent} had to collection {args.collection_id}')
        else:
            print(f'{args.agent} has no access to collection {args.collection_id}')

    def add_group(self, args: Namespace):
        modes = parse_mode(args.mode)
        path = self.access(args).add_group(args.name, modes, args.agents)
        print(f'Created group {path} with {args.mode} access to collection {args.collection_id}')

    def modify_group(self, args: Namespace):
        self.access(args).modify_group(args.name, add=args.add_agents, remove=args.remove_agents)
        print(f'Updated group {args.name} of collection {args.collection_id}')

    def remove_group(self, args: Namespace):
        self.access(args).remove_group(args.name)
        print(f'Removed group {args.name} from collection {args.collection_id}')
