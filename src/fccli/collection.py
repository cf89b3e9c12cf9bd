"""Collections, and their round trip to and from a local directory tree.

On disk, a collection is laid out as follows:

* a container with children is a directory, described by its `index.ttl`
* a container without children is a `<name>.ttl` file
* a binary is the file itself, with its description in a `<name>.ttl` sidecar

Resources can also be added to a collection one file at a time, and each
collection carries its own access control (see `CollectionAccess`).
"""
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from rdflib import Graph, Literal, URIRef
from rdflib.term import Node

from fccli.acl import ACL_ROOT, AGENT_PREDICATES, local_name, replace_acl
from fccli.client import ClientError
from fccli.exceptions import NotFoundError, ValidationError
from fccli.location import Location
from fccli.namespaces import acl, foaf, rdf, schema, vcard
from fccli.paths import join_url_path, resolve_remote_path
from fccli.rdf import parse_turtle, to_turtle
from fccli.repo import Repository, METADATA_SUFFIX
from fccli.utils import rdf_media_type

logger = logging.getLogger(__name__)

COLLECTION_ROOT = '/collection'
INDEX_FILENAME = 'index.ttl'
TURTLE_SUFFIX = '.ttl'


def collection_path(collection_id: str) -> str:
    """
    ```pycon
    >>> collection_path('maps')
    '/collection/maps'
    ```
    """
    return join_url_path(COLLECTION_ROOT, collection_id.strip('/'))


def create_collection(repo: Repository, collection_id: str, metadata: str = None) -> str:
    """Create a collection container. `metadata` is either the path to a local
    turtle file, or turtle text."""
    turtle = None
    if metadata:
        if os.path.isfile(metadata):
            turtle = Path(metadata).read_text()
        else:
            turtle = metadata
    return repo.create_container(collection_path(collection_id), turtle)


def delete_collection(repo: Repository, collection_id: str):
    repo.delete(collection_path(collection_id), permanent=True)


def type_uri(resource_type: str) -> URIRef:
    """
    ```pycon
    >>> type_uri('MediaObject')
    rdflib.term.URIRef('http://schema.org/MediaObject')
    ```
    """
    if resource_type.startswith('http://') or resource_type.startswith('https://'):
        return URIRef(resource_type)
    return schema[resource_type]


def add_resource(
        repo: Repository,
        collection_id: str,
        file: str | Path,
        resource_id: str = None,
        metadata: str | Path = None,
        types: Iterable[str] = (),
) -> str:
    """Upload a local file into a collection, at `resource_id` (by default, the
    file's name) relative to the collection root. The description comes from
    `metadata`, or from a `<file>.ttl` sidecar when there is one; each of
    `types` is added as an `rdf:type`. Returns the repository path of the new
    resource."""
    file = Path(file)
    path = join_url_path(collection_path(collection_id), (resource_id or file.name).strip('/'))
    if metadata is None:
        sidecar = file.with_name(file.name + TURTLE_SUFFIX)
        if sidecar.is_file():
            metadata = sidecar

    turtle = Path(metadata).read_text() if metadata is not None else None
    type_triples = ''.join(f'<> a {type_uri(t).n3()} .\n' for t in types)
    # RDF uploads become containers, which describe themselves
    target = path if rdf_media_type(file) else path + METADATA_SUFFIX
    if turtle is not None:
        # validate before anything is uploaded
        parse_turtle(turtle, repo.global_prefixes, repo.base_uri(target))

    repo.put_binary(path, file)
    if turtle is None and not type_triples:
        return path
    current = repo.get_turtle(target)
    repo.update_description(target, (current if turtle is None else turtle) + '\n' + type_triples, current)
    return path


def delete_resource(repo: Repository, collection_id: str, resource_id: str) -> str:
    path = join_url_path(collection_path(collection_id), resource_id.strip('/'))
    repo.delete(path, permanent=True)
    return path


@dataclass
class TransferStats:
    containers: int = 0
    binaries: int = 0
    deleted: int = 0

    def __str__(self):
        return f'{self.containers} container(s), {self.binaries} binary file(s), {self.deleted} deletion(s)'


class CollectionExporter:
    def __init__(self, repo: Repository, location: Location, collection_id: str, fs_root: str | Path):
        self.repo = repo
        self.location = location
        self.collection_id = collection_id
        self.fs_root = Path(fs_root)
        self.stats = TransferStats()

    @property
    def target_dir(self) -> Path:
        return self.fs_root / self.collection_id

    def description(self, path: str) -> str:
        graph = self.repo.get_graph(path)
        return to_turtle(graph, self.repo.base_uri(path))

    def download(self, path: str, file: Path):
        with self.repo.client.get(path, stream=True) as response:
            if not response.ok:
                raise ClientError(response)
            with file.open('wb') as fh:
                for chunk in response.iter_content(chunk_size=65536):
                    fh.write(chunk)

    def run(self) -> TransferStats:
        root = collection_path(self.collection_id)
        logger.info(f'Exporting {root} to {self.target_dir}')
        stack = [(root, self.target_dir, True)]
        while stack:
            path, local, is_root = stack.pop()
            info, graph = self.location.describe(path)

            if info.is_binary:
                logger.info(f'Exporting binary {path} to {local}')
                local.parent.mkdir(parents=True, exist_ok=True)
                self.download(path, local)
                sidecar = local.with_name(local.name + TURTLE_SUFFIX)
                sidecar.write_text(self.description(path + METADATA_SUFFIX))
                self.stats.binaries += 1
                continue

            children = self.location.child_paths(graph, path)
            if children or is_root:
                local.mkdir(parents=True, exist_ok=True)
                (local / INDEX_FILENAME).write_text(self.description(path))
                for child in reversed(children):
                    child_path = resolve_remote_path(child, path)
                    if child.startswith('/') or '://' in child:
                        logger.warning(f'Skipping {child}, which is outside of {path}')
                        continue
                    stack.append((child_path, local / child, False))
            else:
                local.parent.mkdir(parents=True, exist_ok=True)
                local.with_name(local.name + TURTLE_SUFFIX).write_text(self.description(path))
            logger.info(f'Exported container {path}')
            self.stats.containers += 1

        logger.info(f'Export complete: {self.stats}')
        return self.stats


@dataclass
class DirectoryEntries:
    """Classification of the entries of one local directory."""
    index: Optional[Path]
    directories: dict[str, Path]
    binaries: dict[str, tuple[Path, Optional[Path]]]
    """binary file and its metadata sidecar, if any, keyed by name"""
    containers: dict[str, Path]
    """leaf container descriptions, keyed by name"""

    @property
    def names(self) -> set[str]:
        return set(self.directories) | set(self.binaries) | set(self.containers)


def scan_directory(directory: Path) -> DirectoryEntries:
    index = None
    directories = {}
    files = {}
    turtle_files = {}
    for entry in sorted(directory.iterdir()):
        if entry.is_dir():
            directories[entry.name] = entry
        elif entry.name == INDEX_FILENAME:
            index = entry
        elif entry.name.endswith(TURTLE_SUFFIX):
            turtle_files[entry.name[:-len(TURTLE_SUFFIX)]] = entry
        elif entry.is_file():
            files[entry.name] = entry

    binaries = {name: (file, turtle_files.pop(name, None)) for name, file in files.items()}
    containers = {}
    for name, turtle_file in turtle_files.items():
        if name in directories:
            # a directory without an index may be described by a sibling file
            continue
        containers[name] = turtle_file
    return DirectoryEntries(index, directories, binaries, containers)


class CollectionImporter:
    def __init__(
            self,
            repo: Repository,
            location: Location,
            collection_id: str,
            fs_root: str | Path,
            nested_path: str = '',
            ignore_post: bool = False,
            ignore_removal: bool = False,
    ):
        self.repo = repo
        self.location = location
        self.collection_id = collection_id
        self.fs_root = Path(fs_root)
        self.nested_path = nested_path.strip('/')
        self.ignore_post = ignore_post
        """Do not re-upload binaries that already exist; only re-apply their metadata"""
        self.ignore_removal = ignore_removal
        """Do not delete remote resources that are missing from disk"""
        self.stats = TransferStats()

    def write_description(self, path: str, turtle: str, exists: bool):
        if not exists:
            self.repo.create_container(path, turtle)
            return
        # validate before fetching the current state
        parse_turtle(turtle, self.repo.global_prefixes, self.repo.base_uri(path))
        current = self.repo.get_turtle(path)
        self.repo.update_description(path, turtle, current)

    def import_container(self, path: str, description: Optional[Path]):
        turtle = description.read_text() if description is not None else ''
        exists = self.repo.exists(path)
        if turtle.strip() or not exists:
            self.write_description(path, turtle, exists)
        logger.info(f'Imported container {path}')
        self.stats.containers += 1

    def import_binary(self, path: str, file: Path, sidecar: Optional[Path]):
        exists = self.repo.exists(path)
        if exists and self.ignore_post:
            logger.info(f'Skipping upload of existing binary {path}')
        else:
            self.repo.put_binary(path, file)
            self.stats.binaries += 1
        if sidecar is not None:
            metadata_path = path + METADATA_SUFFIX
            turtle = sidecar.read_text()
            parse_turtle(turtle, self.repo.global_prefixes, self.repo.base_uri(metadata_path))
            self.repo.update_description(metadata_path, turtle, self.repo.get_turtle(metadata_path))

    def remove_missing(self, path: str, names: set[str]):
        for child in self.location.list_children(path).children:
            if child.startswith('/') or '://' in child or child in names:
                continue
            child_path = join_url_path(path, child)
            logger.info(f'Deleting {child_path}, which is not on disk')
            self.repo.delete(child_path, permanent=True)
            self.stats.deleted += 1

    def run(self) -> TransferStats:
        local_root = self.fs_root / self.nested_path if self.nested_path else self.fs_root
        remote_root = join_url_path(collection_path(self.collection_id), self.nested_path)
        if not local_root.is_dir():
            raise NotFoundError(str(local_root), f'Not a directory: {local_root}')
        logger.info(f'Importing {local_root} to {remote_root}')

        stack = [(remote_root, local_root, None)]
        while stack:
            path, directory, fallback_description = stack.pop()
            entries = scan_directory(directory)
            self.import_container(path, entries.index or fallback_description)

            for name, (file, sidecar) in entries.binaries.items():
                self.import_binary(join_url_path(path, name), file, sidecar)
            for name, description in entries.containers.items():
                self.import_container(join_url_path(path, name), description)
            if not self.ignore_removal:
                self.remove_missing(path, entries.names)

            for name, subdirectory in reversed(entries.directories.items()):
                sibling = directory / (name + TURTLE_SUFFIX)
                stack.append((join_url_path(path, name), subdirectory, sibling if sibling.is_file() else None))

        logger.info(f'Import complete: {self.stats}')
        return self.stats


PUBLIC_AGENT = 'PUBLIC'
GROUPS_CONTAINER = 'groups'
MODES = {'r': {'Read'}, 'w': {'Write'}, 'rw': {'Read', 'Write'}}


def parse_mode(mode: str) -> set[str]:
    """Access modes for a mode flag string: `r`, `w`, or `rw`.

    ```pycon
    >>> sorted(parse_mode('wr'))
    ['Read', 'Write']
    ```
    """
    try:
        return set(MODES[''.join(sorted(set(mode.lower())))])
    except KeyError:
        raise ValidationError(f'Mode must be one of r, w, or rw, not "{mode}"')


def slugify(value: str) -> str:
    return re.sub(r'[^\w.-]+', '-', value).strip('-')


@dataclass
class Grant:
    agent: str
    """Agent name, `PUBLIC`, or the repository path of a group"""
    modes: set[str]
    is_group: bool = False


class CollectionAccess:
    """Access control for a collection. All grants live in a single ACL
    resource, mirroring the collection's path under the ACL root, with one
    authorization per agent or group. Groups are containers beneath the
    collection's `groups` container, listing their members with
    `vcard:hasMember`."""

    def __init__(self, repo: Repository, collection_id: str, acl_root: str = ACL_ROOT):
        self.repo = repo
        self.collection_id = collection_id
        self.path = collection_path(collection_id)
        self.acl_path = join_url_path(acl_root, self.path.lstrip('/'))

    @property
    def target(self) -> URIRef:
        return URIRef(self.repo.client.endpoint.url_for(self.path))

    def group_path(self, name: str) -> str:
        return join_url_path(self.path, GROUPS_CONTAINER, name.strip('/'))

    def agent_term(self, agent: str) -> tuple[URIRef, Node]:
        """Predicate and object that name `agent` in an authorization. Paths
        name groups; `PUBLIC` is every agent."""
        if agent.upper() in (PUBLIC_AGENT, 'PUBLIC_AGENT'):
            return acl.agentClass, foaf.Agent
        if agent.startswith('/'):
            return acl.agentGroup, URIRef(self.repo.client.endpoint.url_for(agent))
        return acl.agent, Literal(agent)

    def authorization_uri(self, agent: str) -> URIRef:
        predicate, _ = self.agent_term(agent)
        if predicate == acl.agentClass:
            name = 'public'
        elif predicate == acl.agentGroup:
            name = 'group-' + slugify(agent.rsplit('/', 1)[-1])
        else:
            name = 'user-' + slugify(agent)
        return URIRef(self.repo.base_uri(self.acl_path) + '#' + name)

    def load(self) -> Graph:
        try:
            return self.repo.get_graph(self.acl_path)
        except NotFoundError:
            return Graph()

    def authorizations(self, graph: Graph) -> list[Node]:
        return sorted(set(graph.subjects(acl.accessTo, self.target)))

    def save(self, graph: Graph):
        if not self.authorizations(graph):
            try:
                self.repo.delete(self.acl_path, permanent=True)
                logger.info(f'Removed ACL {self.acl_path}, which has no authorizations left')
            except NotFoundError:
                logger.debug(f'No ACL at {self.acl_path}')
            return
        replace_acl(self.repo, self.acl_path, to_turtle(graph, self.repo.base_uri(self.acl_path)))

    def _remove_agent(self, graph: Graph, agent: str) -> int:
        predicate, term = self.agent_term(agent)
        changed = 0
        for subject in self.authorizations(graph):
            if (subject, predicate, term) not in graph:
                continue
            graph.remove((subject, predicate, term))
            changed += 1
            if not any(graph.value(subject, p) is not None for p in AGENT_PREDICATES):
                # an authorization for nobody
                graph.remove((subject, None, None))
        return changed

    def grant(self, agent: str, modes: set[str]):
        """Give `agent` exactly `modes` on the collection, replacing any access
        it already has."""
        graph = self.load()
        self._remove_agent(graph, agent)
        subject = self.authorization_uri(agent)
        graph.remove((subject, None, None))
        predicate, term = self.agent_term(agent)
        graph.add((subject, rdf.type, acl.Authorization))
        graph.add((subject, acl.accessTo, self.target))
        graph.add((subject, predicate, term))
        for mode in sorted(modes):
            graph.add((subject, acl.mode, acl[mode]))
        self.save(graph)
        logger.info(f'Granted {", ".join(sorted(modes))} on {self.path} to {agent}')

    def revoke(self, agent: str) -> int:
        """Remove all access `agent` has to the collection. Returns the number
        of authorizations that named it."""
        graph = self.load()
        changed = self._remove_agent(graph, agent)
        if changed:
            self.save(graph)
            logger.info(f'Revoked access to {self.path} from {agent}')
        else:
            logger.info(f'{agent} has no access to {self.path}')
        return changed

    def grants(self) -> list[Grant]:
        graph = self.load()
        grants = {}
        for subject in self.authorizations(graph):
            modes = {local_name(m) for m in graph.objects(subject, acl.mode)}
            for agent in graph.objects(subject, acl.agent):
                grants.setdefault((str(agent), False), set()).update(modes)
            for group in graph.objects(subject, acl.agentGroup):
                grants.setdefault((self.repo.client.repo_path(str(group)), True), set()).update(modes)
            if (subject, acl.agentClass, foaf.Agent) in graph:
                grants.setdefault((PUBLIC_AGENT, False), set()).update(modes)
        return [Grant(agent, modes, is_group) for (agent, is_group), modes in sorted(grants.items())]

    def group_description(self, name: str, members: Iterable[str]) -> str:
        base_uri = self.repo.base_uri(self.group_path(name))
        graph = Graph()
        subject = URIRef(base_uri)
        graph.add((subject, rdf.type, vcard.Group))
        graph.add((subject, vcard.fn, Literal(name)))
        for member in members:
            graph.add((subject, vcard.hasMember, Literal(member)))
        return to_turtle(graph, base_uri)

    def add_group(self, name: str, modes: set[str], members: Iterable[str] = ()) -> str:
        path = self.group_path(name)
        if self.repo.exists(path):
            raise ValidationError(f"Group '{name}' already exists")
        self.repo.create_container(path, self.group_description(name, members))
        self.grant(path, modes)
        return path

    def members(self, name: str) -> list[str]:
        path = self.group_path(name)
        graph = self.repo.get_graph(path)
        return sorted(str(m) for m in graph.objects(URIRef(self.repo.base_uri(path)), vcard.hasMember))

    def modify_group(self, name: str, add: Iterable[str] = (), remove: Iterable[str] = ()):
        path = self.group_path(name)
        base_uri = self.repo.base_uri(path)
        current = self.repo.get_turtle(path)
        _, graph = parse_turtle(current, self.repo.global_prefixes, base_uri)
        subject = URIRef(base_uri)
        for member in remove:
            graph.remove((subject, vcard.hasMember, Literal(member)))
        for member in add:
            graph.add((subject, vcard.hasMember, Literal(member)))
        self.repo.update_description(path, to_turtle(graph, base_uri), current)

    def remove_group(self, name: str) -> int:
        path = self.group_path(name)
        try:
            self.repo.delete(path, permanent=True)
        except NotFoundError:
            logger.warning(f"Group '{name}' does not exist")
        return self.revoke(path)
