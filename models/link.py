from __future__ import annotations

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# href may be computed from (representation, context) before storage
Href = Union[str, Callable[..., str]]


# -----------------------------------------------------------------------------
# Link
# -----------------------------------------------------------------------------
class Link(BaseModel):
    """A HAL link object (draft-kelly-json-hal section 5)."""
    href: Href = Field(
        ...,
        description="Target URI or URI template"
    )
    templated: Optional[bool] = Field(
        None,
        description="True when href is a URI template"
    )
    title: Optional[str] = None
    type: Optional[str] = Field(
        None,
        description="Media type hint"
    )
    deprecation: Optional[str] = None
    name: Optional[str] = None
    profile: Optional[str] = None
    hreflang: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
