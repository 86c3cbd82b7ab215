"""
Repository resource: create, read, update and delete a Bitbucket Server
repository from a :class:`RepositoryConfig`.

Every call is a single request/response exchange (create and update add a
confirmatory read). Nothing is cached between calls; the composite identity
``project_key/slug`` stored on the config is the only link to the remote
object once it exists.
"""

from enum import StrEnum
from urllib.parse import quote

import httpx

from bitbucket_server_provider.errors import BodyReadError, FormatError, NotFoundError
from bitbucket_server_provider.log import get_logger
from bitbucket_server_provider.models.repository import RemoteRepository, RepositoryConfig
from bitbucket_server_provider.services.bitbucket_client import HttpClient

logger = get_logger("resources.repository")

API_ROOT = "/rest/api/1.0"


class ReadResult(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not_found"


def effective_slug(config: RepositoryConfig) -> str:
    """The slug used in request paths: the configured slug, else the name."""
    return config.slug or config.name


def repository_path(project_key: str, slug: str) -> str:
    # Each segment is escaped whole so "/" or "?" cannot change the target URL
    return f"{API_ROOT}/projects/{quote(project_key, safe='')}/repos/{quote(slug, safe='')}"


def format_identity(project_key: str, slug: str) -> str:
    return f"{project_key}/{slug}"


def parse_identity(identity: str) -> tuple[str, str]:
    """
    Split an identity into ``(project_key, slug)``.

    Raises:
        FormatError: If the identity does not have exactly two ``/``-separated parts.
    """
    parts = identity.split("/")
    if len(parts) != 2:
        raise FormatError()
    return parts[0], parts[1]


class RepositoryResource:
    """Lifecycle operations for one repository, backed by an injected HTTP client."""

    def __init__(self, client: HttpClient) -> None:
        self.client = client

    def _path(self, config: RepositoryConfig) -> str:
        return repository_path(config.project_key, effective_slug(config))

    def create(self, config: RepositoryConfig) -> ReadResult:
        """
        Create the repository, record its identity, then read it back.

        The identity is set as soon as the POST succeeds. If the read that
        follows fails, the repository exists remotely and the identity stays
        set; nothing is rolled back.

        Raises:
            SerializationError: If the payload cannot be encoded.
            RequestError: If the POST fails or the server rejects it.
        """
        payload = RemoteRepository.from_config(config).to_json()
        slug = effective_slug(config)

        logger.info("Creating repository %s/%s", config.project_key, slug)
        self.client.post(repository_path(config.project_key, slug), payload)

        config.id = format_identity(config.project_key, slug)
        return self.read(config)

    def read(self, config: RepositoryConfig) -> ReadResult:
        """
        Refresh ``config`` from the server.

        Returns:
            ``ReadResult.FOUND`` after the config was updated, or
            ``ReadResult.NOT_FOUND`` when the server answered anything but 200.
            In that case no field is taken from the server, but when
            ``config.id`` is set its ``project_key`` and ``slug`` have already
            been overwritten from the identity.

        Raises:
            FormatError: If ``config.id`` is set but malformed.
            RequestError: If the GET could not be sent.
            BodyReadError: If the response body cannot be read.
            SerializationError: If the response body is not a repository.
        """
        if config.id:
            config.project_key, config.slug = parse_identity(config.id)

        path = self._path(config)
        response = self.client.get(path)

        if response.status_code != 200:
            logger.warning("Repository %s not readable (HTTP %s)", path, response.status_code)
            return ReadResult.NOT_FOUND

        try:
            body = response.read()
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise BodyReadError(f"Could not read response from {path}: {e}") from e

        RemoteRepository.from_json(body).apply_to(config)
        logger.debug("Read %s", config)
        return ReadResult.FOUND

    def update(self, config: RepositoryConfig) -> ReadResult:
        """
        Push the current config to the server, then read it back.

        Raises:
            SerializationError: If the payload cannot be encoded.
            RequestError: If the PUT fails or the server rejects it.
        """
        payload = RemoteRepository.from_config(config).to_json()
        path = self._path(config)

        logger.info("Updating repository %s", path)
        self.client.put(path, payload)
        return self.read(config)

    def delete(self, config: RepositoryConfig) -> None:
        path = self._path(config)
        logger.info("Deleting repository %s", path)
        self.client.delete(path)

    def import_state(self, identity: str) -> RepositoryConfig:
        """
        Build a config for an existing repository from its identity.

        Raises:
            FormatError: If the identity is malformed.
            NotFoundError: If no repository exists under that identity.
        """
        project_key, slug = parse_identity(identity)
        config = RepositoryConfig(name=slug, project_key=project_key, slug=slug, id=identity)
        if self.read(config) is ReadResult.NOT_FOUND:
            raise NotFoundError(f"Repository {identity} does not exist")
        return config
