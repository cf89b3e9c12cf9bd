import logging
import sys
from argparse import Namespace

from requests import Response

from fccli.cli.commands import BaseCommand
from fccli.client import upload_headers
from fccli.exceptions import ValidationError
from fccli.paths import resolve_local_path
from fccli.rdf import with_global_prefixes

logger = logging.getLogger(__name__)

METHODS = ('get', 'head', 'post', 'put', 'patch', 'delete', 'copy', 'move')
DEFAULT_PRINT = 'hb'


def configure_cli(subparsers):
    parser = subparsers.add_parser(
        name='http',
        description='Send a raw HTTP request to the repository'
    )
    parser.add_argument(
        'method',
        choices=METHODS,
        type=str.lower,
        help='HTTP method'
    )
    parser.add_argument(
        'path', nargs='?',
        help='Repository path. Defaults to the current working directory.'
    )
    parser.add_argument(
        '-H', '--header',
        help='additional request header, as "Name: value"; may be repeated',
        dest='headers',
        action='append',
        default=[]
    )
    parser.add_argument(
        '-P', '--print',
        help='what to print, any combination of hbHB, where H=request headers, B=request body, '
             f'h=response headers, and b=response body; defaults to "{DEFAULT_PRINT}"',
        dest='print_options',
        default=DEFAULT_PRINT,
        action='store'
    )
    parser.add_argument(
        '-@', '--data-binary',
        help='local file to send as the request body, or "stdin"',
        dest='data_binary',
        action='store'
    )
    parser.add_argument(
        '-t', '--data-string',
        help='turtle to send as the request body; global prefixes may be used',
        dest='data_string',
        action='store'
    )
    parser.add_argument(
        '-d', '--destination',
        help='destination path for COPY and MOVE',
        action='store'
    )
    parser.set_defaults(cmd_name='http')


def parse_header(header: str) -> tuple[str, str]:
    """
    ```pycon
    >>> parse_header('Accept: text/turtle')
    ('Accept', 'text/turtle')
    ```
    """
    name, sep, value = header.partition(':')
    if not sep or not name.strip():
        raise ValidationError(f'Invalid HTTP header: {header}')
    return name.strip(), value.strip()


def format_headers(headers) -> str:
    return ''.join(f'{name}: {value}\n' for name, value in headers.items())


class Command(BaseCommand):
    def __call__(self, args: Namespace):
        if args.method in ('copy', 'move') and not args.destination:
            raise ValidationError(f'A destination is required for {args.method.upper()}')
        if args.data_binary and args.data_string:
            raise ValidationError('Use only one of --data-binary and --data-string')

        path = self.resolve(args.path)
        headers = dict(parse_header(h) for h in args.headers)
        kwargs = {}

        if args.data_string:
            text, _ = with_global_prefixes(args.data_string, self.repo.global_prefixes)
            headers.setdefault('Content-Type', 'text/turtle')
            kwargs['data'] = text.encode('utf-8')
        elif args.data_binary:
            if args.data_binary.lower() == 'stdin':
                kwargs['data'] = sys.stdin.buffer.read()
            else:
                file = resolve_local_path(args.data_binary)
                headers = {**upload_headers(file), **headers}
                kwargs['file'] = file

        if args.method in ('copy', 'move'):
            kwargs['destination'] = self.resolve(args.destination)

        method = getattr(self.client, args.method)
        response = method(path, headers=headers, **kwargs)
        self.display(response, args.print_options)

    @staticmethod
    def display(response: Response, print_options: str):
        request = response.request
        if 'H' in print_options:
            print(f'{request.method} {request.url}')
            print(format_headers(request.headers))
        if 'B' in print_options and request.body:
            body = request.body
            if isinstance(body, bytes):
                body = body.decode('utf-8', errors='replace')
            if isinstance(body, str):
                print(body)
                print()
        if 'h' in print_options:
            print(f'{response.status_code} {response.reason}')
            print(format_headers(response.headers))
        if 'b' in print_options and response.content:
            print(response.text)
