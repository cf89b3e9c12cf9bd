import getpass
import logging
from argparse import Namespace

from fccli.cli.commands import BaseCommand
from fccli.client.auth import Credentials, local_login, decode_jwt_claims
from fccli.exceptions import AuthError, ValidationError

logger = logging.getLogger(__name__)


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='login',
        description='Log in to the repository, and store the issued token'
    )
    parser.add_argument(
        '-u', '--username',
        help='username to log in with',
        dest='login_username',
        action='store'
    )
    parser.add_argument(
        '-p', '--password',
        help='password; prompted for if not given',
        dest='login_password',
        action='store'
    )
    parser.add_argument(
        '--token',
        help='store this JWT instead of logging in',
        action='store'
    )
    parser.set_defaults(cmd_name='login')


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.token:
            jwt = args.token
            claims = decode_jwt_claims(jwt)
            if not claims:
                raise ValidationError('Not a valid JWT')
            username = claims.get('username') or claims.get('sub')
        else:
            username = args.login_username or self.config.get('USERNAME')
            if not username:
                raise ValidationError('A username is required')
            password = args.login_password or getpass.getpass(f'Password for {username}: ')
            jwt = local_login(self.context.endpoint.host, Credentials(username, password))
            if jwt is None:
                raise AuthError(f'Invalid credentials for user {username}')

        self.config.on_login(jwt)
        if username:
            self.config.set('USERNAME', username)
        self.context.reset_client()
        print(f'Logged in as {username or "unknown user"}')
