"""Useful namespaces for use with `rdflib` code."""

from rdflib import Namespace

acl = Namespace('http://www.w3.org/ns/auth/acl#')
"""[Web Access Controls (WebAC)](https://solidproject.org/TR/wac)"""

dc = Namespace('http://purl.org/dc/elements/1.1/')
"""[Dublin Core Elements 1.1](https://www.dublincore.org/specifications/dublin-core/dcmi-terms/#section-3)"""

fedora = Namespace('http://fedora.info/definitions/v4/repository#')
"""[Fedora Commons Repository Ontology](https://fedora.info/definitions/v4/2016/10/18/repository)"""

foaf = Namespace('http://xmlns.com/foaf/0.1/')
"""[FOAF ("Friend-of-a-friend") Vocabulary](http://xmlns.com/foaf/0.1/)"""

ldp = Namespace('http://www.w3.org/ns/ldp#')
"""[Linked Data Platform](https://www.w3.org/TR/ldp/)"""

rdf = Namespace('http://www.w3.org/1999/02/22-rdf-syntax-ns#')
"""[RDF](https://www.w3.org/TR/rdf11-schema/)"""

schema = Namespace('http://schema.org/')
"""[Schema.org](https://schema.org/)"""

vcard = Namespace('http://www.w3.org/2006/vcard/ns#')
"""[vCard Ontology](https://www.w3.org/TR/vcard-rdf/)"""

DEFAULT_PREFIXES = {
    'dc': str(dc),
    'foaf': str(foaf),
}
"""Global prefix table used until the user configures their own."""
