"""Web Access Control model of the repository.

ACL resources live in their own tree (by default under `/acl`). Each ACL
resource holds authorizations, and each authorization grants a set of modes
(`Read`, `Write`) on one or more target resources to a set of agents. Walking
the ACL tree collects these authorizations into an `AclNode` tree that mirrors
the paths of the *target* resources.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from rdflib import Graph

from fccli.client import Client
from fccli.exceptions import CycleDetected, NotFoundError
from fccli.location import Location
from fccli.namespaces import acl
from fccli.paths import normalize_remote_path, resolve_remote_path, join_url_path
from fccli.rdf import parse_turtle
from fccli.repo import Repository

logger = logging.getLogger(__name__)

ACL_ROOT = '/acl'
ROOT_SEGMENT = '/'

AGENT_PREDICATES = (acl.agent, acl.agentGroup, acl.agentClass)

ACL_TEMPLATE = '''@prefix acl: <http://www.w3.org/ns/auth/acl#> .

<#authorization> a acl:Authorization ;
    acl:accessTo <{target}> ;
    acl:agent "{agent}" ;
    acl:mode acl:Read, acl:Write .
'''
"""Starting point for a new ACL definition."""


def path_segments(path: str) -> list[str]:
    """Split a repository path into tree segments. The root is `'/'`.

    ```pycon
    >>> path_segments('/secure/sub')
    ['/', 'secure', 'sub']
    ```
    """
    return [ROOT_SEGMENT] + [s for s in normalize_remote_path(path).split('/') if s]


def local_name(uri: str) -> str:
    return str(uri).rsplit('#', 1)[-1].rsplit('/', 1)[-1]


@dataclass
class AclNode:
    defined_at: Optional[str] = None
    """Path of the ACL resource that declared the rules for this node"""
    agents: list[str] = field(default_factory=list)
    modes: set[str] = field(default_factory=set)
    children: dict[str, 'AclNode'] = field(default_factory=dict)

    @property
    def has_rules(self) -> bool:
        return bool(self.agents) and bool(self.modes)

    def find(self, path: str) -> Optional['AclNode']:
        node = self
        for segment in path_segments(path):
            node = node.children.get(segment)
            if node is None:
                return None
        return node

    def ensure_path(self, path: str) -> 'AclNode':
        node = self
        for segment in path_segments(path):
            node = node.children.setdefault(segment, AclNode())
        return node

    def declare(self, path: str, defined_at: str, agents: list[str], modes: set[str]):
        """Record the rules for `path`, replacing any recorded earlier."""
        node = self.ensure_path(path)
        node.defined_at = defined_at
        node.agents = list(agents)
        node.modes = set(modes)

    def to_dict(self) -> dict:
        """JSON-ready nested dictionary. Rule attributes use the reserved keys
        `_def`, `_agents`, and `_modes`; all other keys are path segments."""
        result = {}
        if self.defined_at is not None:
            result['_def'] = self.defined_at
        if self.agents:
            result['_agents'] = list(self.agents)
        if self.modes:
            result['_modes'] = sorted(self.modes)
        for segment, child in self.children.items():
            result[segment] = child.to_dict()
        return result


def declarations(graph: Graph, client: Client):
    """Yield `(target_path, agents, modes)` for every `acl:accessTo` target in an
    ACL resource graph. Targets outside the repository are skipped. Agents
    include groups and agent classes, as well as individual agents."""
    for subject in sorted(set(graph.subjects(predicate=acl.accessTo))):
        agents = sorted(str(a) for p in AGENT_PREDICATES for a in graph.objects(subject, p))
        modes = {local_name(m) for m in graph.objects(subject, acl.mode)}
        for target in graph.objects(subject, acl.accessTo):
            target_path = client.repo_path(str(target))
            if not target_path.startswith('/'):
                logger.warning(f'Skipping authorization for {target}, which is outside the repository')
                continue
            yield target_path, agents, modes


def walk_tree(location: Location, root: str = ACL_ROOT) -> AclNode:
    """Walk the ACL resources beneath `root`, depth first, and build the tree of
    the rules they declare. Raises `CycleDetected` if any resource is reached
    twice; no partial tree is returned."""
    tree = AclNode()
    visited = set()
    stack = [resolve_remote_path(root, location.pwd())]
    while stack:
        path = stack.pop()
        if path in visited:
            raise CycleDetected(path)
        visited.add(path)

        info, graph = location.describe(path)
        if info.is_binary:
            continue
        for target_path, agents, modes in declarations(graph, location.client):
            logger.debug(f'{path} declares {sorted(modes)} on {target_path} for {agents}')
            tree.declare(target_path, defined_at=path, agents=agents, modes=modes)

        children = []
        for child in location.child_paths(graph, path):
            if '://' in child:
                logger.warning(f'Skipping {child}, which is outside the repository')
                continue
            children.append(resolve_remote_path(child, path))
        for child in children:
            if child in visited:
                raise CycleDetected(child)
        # reversed, so that children are visited in sorted order
        stack.extend(reversed(children))
    return tree


def get_access(path: str, tree: AclNode) -> dict[str, dict[str, bool]]:
    """Effective access to `path`: the rules of the deepest node on the way
    from the root to `path` that declares any, expressed per agent.

    ```pycon
    >>> tree = AclNode()
    >>> tree.declare('/secure', defined_at='/acl/secure', agents=['U'], modes={'Read', 'Write'})
    >>> get_access('/secure/sub', tree)
    {'U': {'read': True, 'write': True}}
    ```
    """
    access = {}
    node = tree
    for segment in path_segments(path):
        node = node.children.get(segment)
        if node is None:
            break
        if node.has_rules:
            access = {
                agent: {'read': 'Read' in node.modes, 'write': 'Write' in node.modes}
                for agent in node.agents
            }
    return access


def find_definition(path: str, tree: AclNode) -> Optional[str]:
    """Path of the ACL resource declaring the rules for exactly `path`."""
    node = tree.find(path)
    return node.defined_at if node is not None else None


def replace_acl(repo: Repository, acl_path: str, turtle: str):
    """Replace the ACL resource at `acl_path` with `turtle`. Any existing
    resource there is deleted permanently first."""
    # validate before anything is removed
    parse_turtle(turtle, global_prefixes=repo.global_prefixes, base_uri=repo.base_uri(acl_path))
    try:
        repo.delete(acl_path, permanent=True)
    except NotFoundError:
        logger.debug(f'No existing ACL at {acl_path}')
    repo.put_turtle(acl_path, turtle)
    logger.info(f'Saved ACL {acl_path}')


class AclEditor:
    """Load and save the ACL definition for a repository path."""

    def __init__(self, repo: Repository, location: Location, acl_root: str = ACL_ROOT, default_agent: str = None):
        self.repo = repo
        self.location = location
        self.acl_root = acl_root
        self.default_agent = default_agent or 'fedoraAdmin'

    def load(self, path: str) -> tuple[str, str, bool]:
        """Returns the ACL resource path, its current turtle, and whether it
        already exists. A path with no definition of its own gets the template,
        to be saved under the ACL root."""
        path = self.location.resolve(path)
        try:
            tree = walk_tree(self.location, self.acl_root)
        except NotFoundError:
            logger.info(f'No ACL resources found under {self.acl_root}')
            tree = AclNode()
        defined_at = find_definition(path, tree)
        if defined_at is not None:
            return defined_at, self.repo.get_turtle(defined_at), True
        acl_path = join_url_path(self.acl_root, path.lstrip('/'))
        target = self.repo.client.endpoint.url_for(path)
        return acl_path, ACL_TEMPLATE.format(target=target, agent=self.default_agent), False

    def save(self, acl_path: str, turtle: str):
        replace_acl(self.repo, acl_path, turtle)
