import json
import logging
from argparse import Namespace
from pathlib import Path

from fccli.acl import AclEditor, walk_tree, get_access
from fccli.cli.commands import BaseCommand, confirm
from fccli.editor import edit_text
from fccli.paths import resolve_local_path

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='acl',
        description='Inspect and edit the access control lists of the repository'
    )
    parser.add_argument(
        '--root',
        help='root of the ACL resources; defaults to /acl',
        default='/acl',
        action='store'
    )
    acl_subparsers = parser.add_subparsers(title='acl commands', dest='acl_cmd', required=True)

    acl_subparsers.add_parser(
        name='tree',
        description='Print the tree of access rules declared by the ACL resources'
    )

    show_parser = acl_subparsers.add_parser(
        name='show',
        description='Show the effective access to a resource, per agent'
    )
    show_parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )

    edit_parser = acl_subparsers.add_parser(
        name='edit',
        description='Edit the ACL that applies to exactly this resource, creating it if necessary'
    )
    edit_parser.add_argument(
        '-e', '--editor',
        help='text editor command; defaults to $VISUAL or $EDITOR',
        action='store'
    )
    edit_parser.add_argument(
        '-y', '--yes',
        help='do not ask for confirmation',
        action='store_true'
    )
    edit_parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )
    edit_parser.add_argument(
        'local_file', nargs='?',
        help='local turtle file with the new ACL, instead of editing it'
    )
    parser.set_defaults(cmd_name='acl')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        getattr(self, args.acl_cmd)(args)

    def tree(self, args: Namespace):
        tree = walk_tree(self.location, args.root)
        print(json.dumps(tree.to_dict(), indent=2))

    def show(self, args: Namespace):
        path = self.resolve(args.path)
        access = get_access(path, walk_tree(self.location, args.root))
        if not access:
            print(f'No access rules apply to {path}')
            return
        for agent, modes in sorted(access.items()):
            granted = [mode for mode in ('read', 'write') if modes[mode]]
            print(f"{agent}: {', '.join(granted) or 'none'}")

    def edit(self, args: Namespace):
        editor = AclEditor(
            repo=self.repo,
            location=self.location,
            acl_root=args.root,
            default_agent=self.config.get('USERNAME'),
        )
        acl_path, turtle, exists = editor.load(args.path)
        if exists:
            logger.info(f'Editing existing ACL {acl_path}')
        else:
            logger.info(f'Creating new ACL {acl_path}')

        if args.local_file:
            new_turtle = Path(resolve_local_path(args.local_file)).read_text()
        else:
            new_turtle = edit_text(turtle, editor=args.editor)
            if exists and new_turtle == turtle:
                logger.info('No changes made')
                return
            print(new_turtle)
            if not confirm(f'Save ACL {acl_path}?', args.yes):
                logger.info('ACL edit cancelled')
                return

        editor.save(acl_path, new_turtle)
        print(f'Saved ACL {acl_path}')
