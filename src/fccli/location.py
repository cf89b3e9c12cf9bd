import logging
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Optional

from rdflib import Graph

from fccli.client import Client, ClientError
from fccli.exceptions import NotFoundError, NotAContainerError
from fccli.namespaces import ldp
from fccli.paths import resolve_remote_path, relative_child_path
from fccli.session import Session
from fccli.utils import parse_content_disposition, parse_links

logger = logging.getLogger(__name__)


class ResourceType(Enum):
    CONTAINER = 'container'
    BINARY = 'binary'


@dataclass
class ResourceInfo:
    """Classification of a repository resource, from the headers of a HEAD
    response."""
    path: str
    status: int
    type: ResourceType
    file: dict[str, str] = field(default_factory=dict)
    """`Content-Disposition` parameters (e.g., `filename`) of a binary"""
    links: dict[str, list[str]] = field(default_factory=dict)
    """`Link` header URLs, keyed by `rel`"""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_binary(self) -> bool:
        return self.type is ResourceType.BINARY

    @property
    def services(self) -> list[str]:
        return self.links.get('service', [])

    @property
    def described_by(self) -> Optional[str]:
        urls = self.links.get('describedby', [])
        return urls[0] if urls else None


@dataclass
class Listing:
    children: list[str] = field(default_factory=list)
    is_binary: bool = False

    def __iter__(self):
        return iter(self.children)

    def __len__(self):
        return len(self.children)


def is_binary_response(headers, links: dict[str, list[str]]) -> bool:
    """A resource is binary if it is typed as an `ldp:NonRDFSource`, or if it
    carries a `Content-Disposition` header."""
    return str(ldp.NonRDFSource) in links.get('type', []) or 'Content-Disposition' in headers


class Location:
    """Navigation of the remote resource tree, relative to the session's
    current working directory."""

    def __init__(self, client: Client, session: Session):
        self.client = client
        self.session = session

    def resolve(self, path: str = None) -> str:
        return resolve_remote_path(path, self.session.cwd)

    def pwd(self) -> str:
        return self.session.cwd

    def info(self, path: str = None) -> ResourceInfo:
        """HEAD the resource at `path` and classify it. Raises `NotFoundError` on
        a 404, and `ClientError` on any other error response."""
        path = self.resolve(path)
        response = self.client.head(path)
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(path)
        if not response.ok:
            raise ClientError(response)
        links = parse_links(response.headers.get('Link'))
        if is_binary_response(response.headers, links):
            resource_type = ResourceType.BINARY
        else:
            resource_type = ResourceType.CONTAINER
        return ResourceInfo(
            path=path,
            status=response.status_code,
            type=resource_type,
            file=parse_content_disposition(response.headers.get('Content-Disposition')),
            links=links,
            headers=dict(response.headers),
        )

    def describe(self, path: str = None) -> tuple[ResourceInfo, Graph]:
        """Classify the resource at `path`, and fetch its description as a graph.
        A binary's graph is always empty."""
        info = self.info(path)
        if info.is_binary:
            return info, Graph()
        description = self.client.get_description(info.path, accept='application/n-triples')
        return info, Graph().parse(data=description.value, format=description.media_type)

    def child_paths(self, graph: Graph, parent: str) -> list[str]:
        """Paths of the `ldp:contains` objects in `graph`, relative to the
        `parent` container. Children outside the container are given as
        absolute paths, and children outside the repository as full URLs."""
        children = set()
        for child in graph.objects(predicate=ldp.contains):
            child_path = self.client.repo_path(str(child))
            if child_path.startswith('/'):
                child_path = relative_child_path(child_path, parent)
            children.add(child_path)
        return sorted(children)

    def list_children(self, path: str = None) -> Listing:
        """Names of the resources contained by `path`, relative to it. A binary
        has no children, and is flagged as such in the returned `Listing`."""
        info, graph = self.describe(path)
        if info.is_binary:
            return Listing(children=[], is_binary=True)
        return Listing(children=self.child_paths(graph, info.path))

    def cd(self, path: str = None) -> str:
        """Change the working directory to `path`, after verifying that it
        exists and is a container. The working directory is left unchanged if
        the check fails."""
        info = self.info(path)
        if info.is_binary:
            raise NotAContainerError(info.path)
        self.session.set_cwd(info.path)
        return info.path
