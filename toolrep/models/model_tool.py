from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from toolrep.models.common import _utc_now


class ToolDetails(BaseModel):
    """Details for a callable tool exposed by a server."""

    kind: Literal["tool"] = "tool"
    input_schema: dict[str, Any] | None = Field(
        default=None, description="JSON schema of the tool arguments"
    )


class ResourceDetails(BaseModel):
    """Details for a readable resource exposed by a server."""

    kind: Literal["resource"] = "resource"
    uri_template: str | None = Field(default=None, description="URI or URI template")
    mime_type: str | None = Field(default=None, description="Content type of the resource")


class PromptDetails(BaseModel):
    """Details for a prompt template exposed by a server."""

    kind: Literal["prompt"] = "prompt"
    arguments: list[str] = Field(default_factory=list, description="Prompt argument names")


class TextDetails(BaseModel):
    """Free-text details for capabilities no source describes structurally."""

    kind: Literal["text"] = "text"
    text: str


CapabilityDetails = Annotated[
    ToolDetails | ResourceDetails | PromptDetails | TextDetails,
    Field(discriminator="kind"),
]


class Capability(BaseModel):
    """A named capability of a tool, merged across sources by name."""

    name: str = Field(min_length=1)
    description: str | None = None
    details: CapabilityDetails | None = None


class RepoMetrics(BaseModel):
    """Point-in-time repository metrics from the code-hosting API."""

    stars: int | None = Field(default=None, ge=0)
    forks: int | None = Field(default=None, ge=0)
    watchers: int | None = Field(default=None, ge=0)
    open_issues_count: int | None = Field(default=None, ge=0)
    last_push_at: datetime | None = None
    contributors_count: int | None = Field(default=None, ge=0)


class SourceRecord(BaseModel):
    """Partial tool record produced by one source in one run.

    The identity key is ``url``. It is optional here so that records missing
    it survive validation and get skipped by the normalizer instead.
    """

    url: str | None = Field(default=None, description="Identity key")
    name: str | None = None
    description: str | None = None
    repository_url: str | None = None
    license: str | None = None
    owner: str | None = None
    owner_type: str | None = None
    categories: list[str] = Field(default_factory=list)
    capabilities: list[Capability] = Field(default_factory=list)
    metrics: RepoMetrics | None = None


class CanonicalRecord(SourceRecord):
    """Merged record for one identity key, ready to persist."""

    url: str = Field(min_length=1, description="Identity key")


class Tool(BaseModel):
    """Canonical, persisted entity for one identity key."""

    # Identification
    id: str = Field(default_factory=lambda: uuid4().hex)
    url: str = Field(min_length=1, description="Identity key, unique across the catalog")
    name: str = Field(default="", description="Display name")
    description: str | None = None

    # Provenance
    repository_url: str | None = None
    license: str | None = None
    owner: str | None = None
    owner_type: str | None = None

    # Relations, fully replaced on every run that observes them
    categories: list[str] = Field(default_factory=list)
    capabilities: list[Capability] = Field(default_factory=list)

    # Enrichment
    metrics: RepoMetrics | None = None

    # Metadata
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
    last_scanned_at: datetime | None = None

    def model_post_init(self, __context: object) -> None:
        """Fall back to the URL as display name."""
        if not self.name:
            self.name = self.url
