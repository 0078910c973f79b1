from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# -----------------------------------------------------------------------------
# Rel
# -----------------------------------------------------------------------------
class Rel(BaseModel):
    """A named relation, optionally owned by a namespace"""
    name: str = Field(
        ...,
        min_length=1,
        description="Rel name, defaults to the documentation file's base name"
    )
    file: Optional[str] = Field(
        None,
        description="Path to the rel's documentation"
    )
    description: Optional[str] = Field(
        None,
        description="Short textual description"
    )
    namespace: Optional[Namespace] = Field(
        None,
        exclude=True,
        repr=False,
        description="Owning namespace (back-reference)"
    )

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def default_name_from_file(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if isinstance(data, dict) and not data.get("name") and data.get("file"):
            return {**data, "name": Path(data["file"]).stem}
        return data

    def qname(self) -> str:
        """Namespace-qualified name, e.g. 'mco:boss'"""
        if self.namespace is not None:
            return f"{self.namespace.prefix}:{self.name}"
        return self.name

    # rels and namespaces point at each other; compare by identity
    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__


# -----------------------------------------------------------------------------
# Namespace
# -----------------------------------------------------------------------------
class Namespace(BaseModel):
    """A group of rels addressed as 'prefix:rel'"""
    name: str = Field(
        ...,
        min_length=1,
        pattern=r"^[^\s:/]+$",
        description="Unique namespace name, defaults to the base name of dir"
    )
    prefix: Optional[str] = Field(
        None,
        pattern=r"^[^\s:]+$",
        description="Curie prefix, defaults to name"
    )
    dir: Optional[str] = Field(
        None,
        description="Directory of rel documentation files"
    )
    description: Optional[str] = None
    rels: Dict[str, Rel] = Field(default_factory=dict, repr=False)

    @model_validator(mode="before")
    @classmethod
    def default_name_from_dir(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("name") and data.get("dir"):
            return {**data, "name": Path(data["dir"]).name}
        return data

    @model_validator(mode="after")
    def default_prefix(self):
        if not self.prefix:
            self.prefix = self.name
        return self

    def __eq__(self, other: object) -> bool:
        return self is other

    __hash__ = object.__hash__


Rel.model_rebuild()
