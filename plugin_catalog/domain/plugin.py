"""Plugin catalog domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ResourceState(StrEnum):
    """Load state of an asynchronously fetched resource."""

    PENDING = "pending"
    READY = "ready"
    ERRORED = "errored"


class Author(BaseModel):
    """Plugin author."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the author")
    id: str | None = Field(default=None, description="Optional platform user ID")


class PluginEntry(BaseModel):
    """One searchable catalog record with its resolved link."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="Plugin name")
    description: str = Field(default="", description="Short plugin description")
    authors: tuple[Author, ...] = Field(default=(), description="Plugin authors in manifest order")
    url: str = Field(..., description="Absolute link to the plugin, resolved against the catalog URL")
    main: str | None = Field(default=None, description="Entry point file from the manifest")
    hash: str | None = Field(default=None, description="Build hash from the manifest")
    icon: str | None = Field(default=None, description="Optional icon name")

    @property
    def author_names(self) -> str:
        """Authors joined for display."""
        return ", ".join(author.name for author in self.authors)
