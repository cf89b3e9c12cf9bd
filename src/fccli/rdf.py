"""Turtle parsing and SPARQL Update construction.

The repository is only ever updated with blind overwrite-by-subject patches:
every triple of the old description is deleted, every triple of the new
description is inserted, and the `WHERE` clause is always empty.
"""
import logging
import re
from typing import Mapping, Optional

from rdflib import Graph, URIRef, Literal, BNode
from rdflib.term import Node

from fccli.exceptions import ParseError
from fccli.namespaces import ldp

logger = logging.getLogger(__name__)

DOCUMENT_URI = 'http://fccli.invalid/document'
"""Base URI used to resolve `<>` when the document's real URL is not known."""

EXCLUDED_PREDICATES = {ldp.contains}
"""Server-managed containment relations; never round-tripped into an update."""

PREFIX_DECLARATION = re.compile(
    r'(?:@prefix|\bPREFIX)\s+([A-Za-z][\w.-]*|)\s*:\s*<([^>]*)>',
    re.IGNORECASE,
)

INVALID_IRI_CHARACTERS = set('<>" {}|\\^`')
"""Characters that rdflib accepts in a parsed IRI, but cannot serialize."""


def parse_prefixes(text: str) -> dict[str, str]:
    """Return the prefixes declared in a turtle document, in declaration order.
    Both `@prefix` and SPARQL-style `PREFIX` declarations are recognized.

    ```pycon
    >>> parse_prefixes('@prefix dc: <http://purl.org/dc/elements/1.1/> .')
    {'dc': 'http://purl.org/dc/elements/1.1/'}
    ```
    """
    return {m[1]: m[2] for m in PREFIX_DECLARATION.finditer(text)}


def prefix_declarations(prefixes: Mapping[str, str]) -> str:
    """Turtle `@prefix` lines for each entry in `prefixes`."""
    return '\n'.join(f'@prefix {name}: <{uri}> .' for name, uri in prefixes.items())


def with_global_prefixes(text: str, global_prefixes: Optional[Mapping[str, str]]) -> tuple[str, int]:
    """Prepend declarations for the global prefixes that `text` does not declare
    itself. Returns the new text and the number of lines that were prepended."""
    declared = parse_prefixes(text)
    missing = {k: v for k, v in (global_prefixes or {}).items() if k not in declared}
    if not missing:
        return text, 0
    preamble = prefix_declarations(missing)
    return preamble + '\n' + text, len(missing)


def parse_turtle(
        text: str,
        global_prefixes: Optional[Mapping[str, str]] = None,
        base_uri: str = DOCUMENT_URI,
) -> tuple[dict[str, str], Graph]:
    """Parse a turtle document into its declared prefixes and an `rdflib.Graph`.
    Global prefixes are available to the parser for any prefix the document does
    not declare, but are not included in the returned prefix map.

    Raises a `ParseError` with the line number of the first syntax error."""
    prefixes = parse_prefixes(text)
    data, offset = with_global_prefixes(text, global_prefixes)
    try:
        graph = Graph().parse(data=data, format='turtle', publicID=base_uri)
    except (SyntaxError, ValueError) as e:
        lines = getattr(e, 'lines', None)
        line = max(lines + 1 - offset, 1) if isinstance(lines, int) else None
        raise ParseError(str(getattr(e, '_why', None) or e), line=line) from e
    check_iris(graph)
    return prefixes, graph


def check_iris(graph: Graph):
    """Raise a `ParseError` for the first IRI in `graph` that contains a character
    that is not allowed in an IRI, such as a space."""
    iris = {term for term in graph.all_nodes() if isinstance(term, URIRef)}
    iris.update(graph.predicates())
    for iri in sorted(iris):
        if INVALID_IRI_CHARACTERS.intersection(iri):
            raise ParseError(f'Invalid IRI <{iri}>')


def render_subject(subject: Node, base_uri: str) -> Optional[str]:
    if isinstance(subject, BNode):
        return None
    if subject == URIRef(base_uri):
        return '<>'
    if subject.startswith(base_uri + '#'):
        return f'<{subject[len(base_uri):]}>'
    return subject.n3()


def render_object(obj: Node, base_uri: str, keep_datatype: bool = False) -> str:
    if isinstance(obj, Literal):
        if keep_datatype:
            return obj.n3()
        # datatypes are dropped; the server assigns its own
        return Literal(str(obj), lang=obj.language).n3()
    if isinstance(obj, URIRef):
        return render_subject(obj, base_uri)
    return obj.n3()


def render_triples(
        graph: Graph,
        base_uri: str = DOCUMENT_URI,
        allow_bnodes: bool = True,
        keep_datatypes: bool = False,
) -> list[str]:
    """Render each triple in `graph` as a line of a SPARQL Update template,
    skipping containment triples. Lines are sorted for stable output."""
    lines = []
    for s, p, o in graph:
        if p in EXCLUDED_PREDICATES:
            continue
        subject = render_subject(s, base_uri)
        if subject is None:
            logger.warning(f'Skipping triple with blank node subject: {p.n3()} {o.n3()}')
            continue
        if isinstance(o, BNode) and not allow_bnodes:
            logger.warning(f'Skipping triple with blank node object: {subject} {p.n3()}')
            continue
        lines.append(f'{subject} {p.n3()} {render_object(o, base_uri, keep_datatypes)} .')
    return sorted(lines)


def build_update_patch(
        new_turtle: str,
        old_turtle: Optional[str] = None,
        global_prefixes: Optional[Mapping[str, str]] = None,
        base_uri: str = DOCUMENT_URI,
) -> str:
    """Build a SPARQL Update that replaces the triples of `old_turtle` with the
    triples of `new_turtle`. With no `old_turtle`, the `DELETE` block is empty
    (pure creation). Both documents are parsed before anything is rendered, so
    malformed input raises a `ParseError` and never yields a partial patch.

    The `PREFIX` header lists the new document's prefixes first, then any global
    prefixes it does not declare."""
    new_prefixes, new_graph = parse_turtle(new_turtle, global_prefixes, base_uri)
    if old_turtle is not None:
        _, old_graph = parse_turtle(old_turtle, global_prefixes, base_uri)
    else:
        old_graph = Graph()

    prefixes = dict(new_prefixes)
    for name, uri in (global_prefixes or {}).items():
        if name not in prefixes:
            prefixes[name] = uri

    deletes = render_triples(old_graph, base_uri, allow_bnodes=False)
    inserts = render_triples(new_graph, base_uri)

    lines = [f'PREFIX {name}: <{uri}>' for name, uri in prefixes.items()]
    if lines:
        lines.append('')
    lines.append('DELETE {')
    lines.extend('  ' + triple for triple in deletes)
    lines.append('}')
    lines.append('INSERT {')
    lines.extend('  ' + triple for triple in inserts)
    lines.append('}')
    lines.append('WHERE { }')
    return '\n'.join(lines) + '\n'


def to_turtle(graph: Graph, base_uri: str) -> str:
    """Serialize `graph` as a turtle document in which `base_uri` is written as
    `<>`, so the document can be loaded at a different URL. Containment triples
    are left out; literal datatypes are kept."""
    return ''.join(line + '\n' for line in render_triples(graph, base_uri, allow_bnodes=False, keep_datatypes=True))
