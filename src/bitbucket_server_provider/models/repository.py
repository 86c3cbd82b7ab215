from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bitbucket_server_provider.errors import SerializationError
from bitbucket_server_provider.log import get_logger

logger = get_logger("models")


class RepositoryConfig(BaseModel):
    """Config-side view of a repository, one flat record per resource."""

    model_config = ConfigDict(populate_by_name=True)

    scm_id: str = Field(default="git", alias="scmId")
    project_key: str = ""
    public: bool = True
    forkable: bool = False
    description: str = ""
    name: str
    # Left empty, the server derives the slug from the name
    slug: str = ""
    id: str | None = None

    # Computed on read
    clone_https: str = ""
    clone_ssh: str = ""
    clone_urls: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "RepositoryConfig":
        """Build a config from the host's field map (``scmId``, ``project_key``, ...)."""
        try:
            return cls.model_validate(state)
        except ValidationError as e:
            raise SerializationError(f"Invalid repository state: {e}") from e

    def to_state(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def __str__(self):
        return f"<RepositoryConfig: {self.project_key}/{self.slug or self.name}>"


class CloneLink(BaseModel):
    href: str = ""
    name: str = ""


class RepositoryLinks(BaseModel):
    clone: list[CloneLink] = Field(default_factory=list)


class ProjectRef(BaseModel):
    key: str = ""
    description: str | None = None


class Origin(BaseModel):
    project: ProjectRef = Field(default_factory=ProjectRef)
    public: bool = False
    links: RepositoryLinks | None = None


class RemoteRepository(BaseModel):
    """Wire-side view of a repository as sent to and received from the server."""

    model_config = ConfigDict(extra="ignore")

    scmId: str = ""
    forkable: bool = False
    name: str = ""
    slug: str | None = None
    origin: Origin = Field(default_factory=Origin)

    def __str__(self):
        return f"<Repo: {self.origin.project.key}/{self.slug or self.name}>"

    @classmethod
    def from_config(cls, config: RepositoryConfig) -> "RemoteRepository":
        return cls(
            scmId=config.scm_id,
            forkable=config.forkable,
            name=config.name,
            slug=config.slug or None,
            origin=Origin(
                project=ProjectRef(key=config.project_key, description=config.description),
                public=config.public,
            ),
        )

    @classmethod
    def from_json(cls, data: bytes | str) -> "RemoteRepository":
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise SerializationError(f"Could not decode repository: {e}") from e

    def to_json(self) -> bytes:
        try:
            return self.model_dump_json(exclude_none=True).encode()
        except ValueError as e:
            raise SerializationError(f"Could not encode repository: {e}") from e

    def apply_to(self, config: RepositoryConfig) -> None:
        """Overwrite the server-owned fields of ``config`` with this repository's values."""
        config.scm_id = self.scmId
        config.public = self.origin.public
        config.name = self.name
        # An auto-generated slug equal to the name is not written back
        if self.slug and self.slug != self.name:
            config.slug = self.slug
        config.forkable = self.forkable
        config.description = self.origin.project.description or ""
        config.project_key = self.origin.project.key

        config.clone_https = ""
        config.clone_ssh = ""
        config.clone_urls = {}
        if self.origin.links is None:
            return
        for link in self.origin.links.clone:
            config.clone_urls[link.name] = link.href
            if link.name == "https":
                config.clone_https = link.href
            elif link.name == "ssh":
                config.clone_ssh = link.href
            else:
                logger.debug("Clone link %r of %s kept only in clone_urls", link.name, self)
