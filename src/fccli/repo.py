import logging
from dataclasses import dataclass
from http import HTTPStatus
from pathlib import Path
from typing import Mapping, Optional

from rdflib import Graph
from requests import Response

from fccli.client import Client, ClientError, OMIT_SERVER_MANAGED_TRIPLES, upload_headers
from fccli.exceptions import NotFoundError, ValidationError
from fccli.location import ResourceInfo, ResourceType
from fccli.namespaces import fedora
from fccli.rdf import build_update_patch, parse_turtle, with_global_prefixes

logger = logging.getLogger(__name__)

METADATA_SUFFIX = '/fcr:metadata'
TOMBSTONE_SUFFIX = '/fcr:tombstone'
VERSIONS_SUFFIX = '/fcr:versions'


class RepositoryError(Exception):
    def __init__(self, *args, response: Response = None):
        super().__init__(*args)
        self.response = response
        """HTTP response that triggered this error."""


@dataclass
class Version:
    label: str
    url: str
    created: Optional[str] = None

    def __str__(self):
        return f'{self.label} {self.created}' if self.created else self.label


def description_path(info: ResourceInfo) -> str:
    """Path of the RDF description of a resource: the `fcr:metadata` child of a
    binary, or the container itself.

    ```pycon
    >>> description_path(ResourceInfo(path='/a/b', status=200, type=ResourceType.BINARY))
    '/a/b/fcr:metadata'
    ```
    """
    if info.is_binary:
        return info.path.rstrip('/') + METADATA_SUFFIX
    return info.path


def require_version_name(name: Optional[str]) -> str:
    if not name:
        raise ValidationError('Version name required')
    return name


class Repository:
    """Create, read, update, and delete operations on repository resources,
    addressed by absolute repository paths."""

    def __init__(self, client: Client, global_prefixes: Mapping[str, str] = None):
        self.client = client
        self.global_prefixes = global_prefixes

    def base_uri(self, path: str) -> str:
        """URI that `<>` refers to in the description of `path`."""
        if path.endswith(METADATA_SUFFIX):
            path = path[:-len(METADATA_SUFFIX)]
        return self.client.url_for(path)

    def get_turtle(self, path: str, include_server_managed: bool = False) -> str:
        """Turtle description of the resource at `path`. Raises `NotFoundError`
        for a missing resource, and `ClientError` for any other failure."""
        headers = {'Accept': 'text/turtle'}
        if not include_server_managed:
            headers['Prefer'] = OMIT_SERVER_MANAGED_TRIPLES
        response = self.client.get(path, headers=headers)
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(path)
        if not response.ok:
            raise ClientError(response)
        return response.text

    def get_graph(self, path: str, include_server_managed: bool = False) -> Graph:
        _, graph = parse_turtle(
            self.get_turtle(path, include_server_managed),
            global_prefixes=self.global_prefixes,
            base_uri=self.base_uri(path),
        )
        return graph

    def put_turtle(self, path: str, turtle: str) -> Response:
        """PUT a turtle description to `path`, replacing its description."""
        text, _ = with_global_prefixes(turtle, self.global_prefixes)
        headers = {'Content-Type': 'text/turtle'}
        response = self.client.put(path, headers=headers, data=text.encode('utf-8'))
        if not response.ok:
            raise RepositoryError(f'Unable to write {path}: {response.status_code} {response.reason}', response=response)
        return response

    def create_container(self, path: str, turtle: str = None) -> str:
        """Create a container at `path`, optionally with an initial turtle
        description. Returns the URL of the new container."""
        if turtle:
            parse_turtle(turtle, global_prefixes=self.global_prefixes, base_uri=self.base_uri(path))
            response = self.put_turtle(path, turtle)
        else:
            response = self.client.put(path)
            if not response.ok:
                raise RepositoryError(
                    f'Unable to create {path}: {response.status_code} {response.reason}', response=response
                )
        logger.info(f'Created container {path}')
        return response.headers.get('Location', self.client.url_for(path))

    def put_binary(self, path: str, file: str | Path, filename: str = None) -> str:
        """Upload a local file to `path`. Returns the URL of the binary."""
        headers = upload_headers(file, filename)
        response = self.client.put(path, headers=headers, file=file)
        if not response.ok:
            raise RepositoryError(
                f'Unable to upload {file} to {path}: {response.status_code} {response.reason}', response=response
            )
        logger.info(f'Uploaded {file} to {path}')
        return response.headers.get('Location', self.client.url_for(path))

    def update_description(self, path: str, new_turtle: str, old_turtle: str = None) -> Optional[Response]:
        """Replace the triples of `old_turtle` with those of `new_turtle` using a
        SPARQL Update PATCH. Both documents are parsed before any request is
        sent. Returns `None` when there is nothing to change."""
        patch = build_update_patch(
            new_turtle,
            old_turtle,
            global_prefixes=self.global_prefixes,
            base_uri=self.base_uri(path),
        )
        if old_turtle is not None and new_turtle == old_turtle:
            logger.info(f'No changes to {path}')
            return None
        logger.debug(f'SPARQL Update for {path}:\n{patch}')
        response = self.client.patch(
            path,
            headers={'Content-Type': 'application/sparql-update'},
            data=patch.encode('utf-8'),
        )
        if not response.ok:
            raise RepositoryError(f'Unable to update {path}: {response.status_code} {response.reason}', response=response)
        logger.info(f'Updated {path}')
        return response

    def delete(self, path: str, permanent: bool = True):
        """Delete the resource at `path`. With `permanent`, also delete the
        tombstone the server leaves behind, so the path can be reused."""
        response = self.client.delete(path)
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(path)
        if not response.ok:
            raise RepositoryError(f'Unable to delete {path}: {response.status_code} {response.reason}', response=response)
        logger.info(f'Deleted {path}')
        if permanent:
            tombstone = path.rstrip('/') + TOMBSTONE_SUFFIX
            response = self.client.delete(tombstone)
            if not response.ok:
                raise RepositoryError(
                    f'Unable to delete tombstone for {path}: {response.status_code} {response.reason}',
                    response=response,
                )
            logger.debug(f'Deleted {tombstone}')

    def exists(self, path: str) -> bool:
        response = self.client.head(path)
        if response.status_code in (HTTPStatus.NOT_FOUND, HTTPStatus.GONE):
            return False
        if not response.ok:
            raise ClientError(response)
        return True

    def list_versions(self, path: str) -> list[Version]:
        versions_path = path.rstrip('/') + VERSIONS_SUFFIX
        response = self.client.get(versions_path, headers={'Accept': 'text/turtle'})
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(path)
        if not response.ok:
            raise ClientError(response)
        _, graph = parse_turtle(response.text, base_uri=self.client.url_for(versions_path))
        versions = []
        for version_uri in graph.objects(predicate=fedora.hasVersion):
            label = graph.value(version_uri, fedora.hasVersionLabel)
            created = graph.value(version_uri, fedora.created)
            versions.append(Version(
                label=str(label) if label is not None else str(version_uri).rsplit('/', 1)[-1],
                url=str(version_uri),
                created=str(created) if created is not None else None,
            ))
        return sorted(versions, key=lambda v: (v.created or '', v.label))

    def _version_path(self, path: str, name: str) -> str:
        return path.rstrip('/') + VERSIONS_SUFFIX + '/' + require_version_name(name)

    def get_version(self, path: str, name: str) -> str:
        version_path = self._version_path(path, name)
        response = self.client.get(version_path, headers={'Accept': 'text/turtle'})
        if response.status_code == HTTPStatus.NOT_FOUND:
            raise NotFoundError(version_path)
        if not response.ok:
            raise ClientError(response)
        return response.text

    def create_version(self, path: str, name: str) -> str:
        require_version_name(name)
        response = self.client.post(path.rstrip('/') + VERSIONS_SUFFIX, headers={'Slug': name})
        if not response.ok:
            raise RepositoryError(
                f'Unable to create version {name} of {path}: {response.status_code} {response.reason}',
                response=response,
            )
        logger.info(f'Created version {name} of {path}')
        return response.headers.get('Location', self.client.url_for(self._version_path(path, name)))

    def revert_to_version(self, path: str, name: str):
        response = self.client.patch(self._version_path(path, name))
        if not response.ok:
            raise RepositoryError(
                f'Unable to revert {path} to version {name}: {response.status_code} {response.reason}',
                response=response,
            )
        logger.info(f'Reverted {path} to version {name}')

    def delete_version(self, path: str, name: str):
        response = self.client.delete(self._version_path(path, name))
        if not response.ok:
            raise RepositoryError(
                f'Unable to delete version {name} of {path}: {response.status_code} {response.reason}',
                response=response,
            )
        logger.info(f'Deleted version {name} of {path}')
