"""
Content gateway data models.
"""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire names are camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContentRequest(CamelModel):
    """Inbound request for educational content about a detected object."""

    object_name: str
    subject: str

    @field_validator("object_name", "subject", mode="before")
    @classmethod
    def coerce_scalar(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("object_name", "subject")
    @classmethod
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class LinkRef(BaseModel):
    title: str
    url: str
    source: str = ""


class ContentResponse(CamelModel):
    """Content returned to the app, either generated or the fallback."""

    title: str
    text: str
    explanation: str = ""
    fun_facts: List[str] = []
    links: List[LinkRef] = []
    related_objects: List[str] = []

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class GeneratedContent(CamelModel):
    """Strict schema for the JSON object produced by the generation provider.

    Unknown fields are rejected. ``links`` and ``relatedObjects`` are kept
    loose here; malformed items are dropped during sanitization.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str
    text: str
    explanation: str = ""
    fun_facts: List[str] = []
    links: List[Any] = []
    related_objects: List[Any] = []

    @field_validator("title", "text")
    @classmethod
    def require_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("links", "related_objects", mode="before")
    @classmethod
    def coerce_list(cls, v: Any) -> Any:
        # Anything but a list is treated as absent
        return v if isinstance(v, list) else []
