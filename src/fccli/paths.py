"""Path resolution for repository (remote) paths and local filesystem paths.

Repository paths are always slash-delimited, regardless of the platform's
native separator, and are resolved against the session's current working
directory. Local paths are resolved against the process working directory and
the user's home directory, and never against the repository cwd.
"""
import os
import posixpath


def normalize_remote_path(path: str) -> str:
    """Collapse `.`, `..`, and redundant slashes in an absolute repository path.

    ```pycon
    >>> normalize_remote_path('/foo//bar/./baz/../qux/')
    '/foo/bar/qux'

    >>> normalize_remote_path('/..')
    '/'
    ```
    """
    path = path.replace('\\', '/')
    normalized = posixpath.normpath('/' + path.lstrip('/'))
    # posixpath.normpath keeps a leading double slash, per POSIX
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    return normalized


def join_url_path(*parts: str) -> str:
    """Join path segments with forward slashes. Backslash separators (e.g.,
    from a native Windows path join) are rewritten to `/`.

    ```pycon
    >>> join_url_path('/foo', 'bar', 'baz')
    '/foo/bar/baz'
    ```
    """
    return posixpath.join(*(part.replace('\\', '/') for part in parts))


def resolve_remote_path(path: str = None, cwd: str = '/') -> str:
    """Resolve `path` to an absolute, normalized repository path. Absolute paths
    ignore `cwd`; relative paths are joined to it. If `path` is omitted, returns
    the normalized `cwd`.

    ```pycon
    >>> resolve_remote_path('/a/b', cwd='/x')
    '/a/b'

    >>> resolve_remote_path('../c', cwd='/a/b')
    '/a/c'

    >>> resolve_remote_path(cwd='/a/b')
    '/a/b'
    ```
    """
    if path is None or path == '':
        path = '.'
    path = str(path).strip().replace('\\', '/')
    if path.startswith('/'):
        return normalize_remote_path(path)
    return normalize_remote_path(join_url_path(cwd or '/', path))


def relative_child_path(child: str, parent: str) -> str:
    """Return `child` relative to `parent` if it lies beneath it. Otherwise,
    return the (normalized) absolute `child` path unchanged.

    ```pycon
    >>> relative_child_path('/a/b/c', '/a/b')
    'c'

    >>> relative_child_path('/x/y', '/a/b')
    '/x/y'
    ```
    """
    child = normalize_remote_path(child)
    parent = normalize_remote_path(parent)
    prefix = parent if parent.endswith('/') else parent + '/'
    if child.startswith(prefix) and child != parent:
        return child[len(prefix):]
    return child


def resolve_local_path(path: str) -> str:
    """Make a local filesystem path absolute. A leading `~` expands to the
    user's home directory; other relative paths are resolved against the
    process working directory."""
    path = path.strip()
    if path.startswith('~'):
        return os.path.join(os.path.expanduser('~'), path[1:].lstrip('/\\'))
    if not os.path.isabs(path):
        return os.path.join(os.getcwd(), path)
    return path
