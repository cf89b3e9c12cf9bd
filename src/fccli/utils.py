import hashlib
import logging
import os
from email.message import Message
from pathlib import Path
from typing import Mapping, Optional

from requests.utils import parse_header_links

DEFAULT_LOGGING_OPTIONS = {
    'version': 1,
    'formatters': {
        'full': {
            'format': '%(levelname)s|%(asctime)s|%(name)s|%(message)s'
        },
        'messageonly': {
            'format': '%(message)s'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'messageonly',
            'stream': 'ext://sys.stderr'
        },
        'file': {
            'class': 'logging.FileHandler',
            'level': 'DEBUG',
            'formatter': 'full'
        }
    },
    'loggers': {
        '__main__': {
            'level': 'DEBUG',
            'handlers': ['console', 'file'],
            'propagate': False
        },
        'fccli': {
            'level': 'DEBUG',
            'handlers': ['console', 'file'],
            'propagate': False
        },
        # suppress debug output from urllib3 by default
        'urllib3': {
            'level': 'WARNING',
        }
    },
    'root': {
        'level': 'DEBUG'
    }
}
logger = logging.getLogger(__name__)

RDF_MEDIA_TYPES = {
    '.json': 'application/ld+json',
    '.nt': 'application/n-triples',
    '.xml': 'application/rdf+xml',
    '.n3': 'text/n3',
    '.txt': 'text/plain',
    '.ttl': 'text/turtle',
}
"""Local file extensions that are uploaded as RDF, mapped to their media types."""


def envsubst(value: str | list | dict, env: Mapping[str, str] = None) -> str | list | dict:
    """
    Recursively replace `${VAR_NAME}` placeholders in value with the values of the
    corresponding keys of env. If env is not given, it defaults to the environment
    variables in os.environ.

    Any placeholders that do not have a corresponding key in the env dictionary
    are left as is.

    :param value: String, list, or dictionary to search for `${VAR_NAME}` placeholders.
    :param env: Dictionary of values to use as replacements. If not given, defaults
        to `os.environ`.
    :return: If `value` is a string, returns the result of replacing `${VAR_NAME}` with the
        corresponding `value` from env. If `value` is a list, returns a new list where each
        item in `value` replaced with the result of calling `envsubst()` on that item. If
        `value` is a dictionary, returns a new dictionary where each item in `value` is replaced
        with the result of calling `envsubst()` on that item.
    """
    if env is None:
        env = os.environ
    if isinstance(value, str):
        if '${' in value:
            try:
                return value.replace('${', '{').format(**env)
            except KeyError as e:
                missing_key = str(e.args[0])
                logger.warning(f'Environment variable ${{{missing_key}}} not found')
                # for a missing key, just return the string without substitution
                return envsubst(value, {missing_key: f'${{{missing_key}}}', **env})
        else:
            return value
    elif isinstance(value, list):
        return [envsubst(v, env) for v in value]
    elif isinstance(value, dict):
        return {k: envsubst(v, env) for k, v in value.items()}
    else:
        return value


def rdf_media_type(filename: str | Path) -> Optional[str]:
    """Return the RDF media type for the extension of `filename`, or `None`
    if the file should be treated as an opaque binary.

    ```pycon
    >>> rdf_media_type('metadata.TTL')
    'text/turtle'

    >>> rdf_media_type('photo.jpg') is None
    True
    ```
    """
    return RDF_MEDIA_TYPES.get(Path(filename).suffix.lower())


def sha256_digest(file: str | Path, chunk_size: int = 65536) -> str:
    """Hex-encoded SHA-256 digest of the contents of `file`."""
    sha256 = hashlib.sha256()
    with open(file, 'rb') as fh:
        for chunk in iter(lambda: fh.read(chunk_size), b''):
            sha256.update(chunk)
    return sha256.hexdigest()


def parse_content_disposition(value: Optional[str]) -> dict[str, str]:
    """Parse the parameters of a `Content-Disposition` header value into a
    dictionary. Returns an empty dictionary for a missing header."""
    if not value:
        return {}
    message = Message()
    message['Content-Disposition'] = value
    return {k: str(v) for k, v in message.get_params(header='Content-Disposition')[1:]}


def parse_links(value: Optional[str]) -> dict[str, list[str]]:
    """Parse an HTTP `Link` header into a dictionary mapping each `rel` to the
    list of URLs with that relation. Unlike `requests.Response.links`, repeated
    relations (e.g., multiple `rel="type"` links) are all kept.

    ```pycon
    >>> parse_links('<http://www.w3.org/ns/ldp#Resource>;rel="type", <http://www.w3.org/ns/ldp#Container>;rel="type"')
    {'type': ['http://www.w3.org/ns/ldp#Resource', 'http://www.w3.org/ns/ldp#Container']}
    ```
    """
    links = {}
    if not value:
        return links
    for link in parse_header_links(value):
        rel = link.get('rel')
        if rel is None:
            continue
        links.setdefault(rel, []).append(link['url'])
    return links
