from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -----------------------------------------------------------------------------
# Representation configuration
# -----------------------------------------------------------------------------
class RepresentationConfig(BaseModel):
    """
    Declarative configuration applied to a representation: links to add, entity
    fields to embed, fields to ignore and a prepare hook.
    """
    links: Dict[str, Any] = Field(
        default_factory=dict,
        description="rel -> href, href template, link object or href function"
    )
    embedded: Dict[str, EmbeddedConfig] = Field(
        default_factory=dict,
        description="rel -> embedded declaration"
    )
    ignore: List[str] = Field(
        default_factory=list,
        description="Entity fields left out of the payload"
    )
    prepare: Optional[Callable[..., Any]] = Field(
        None,
        description="Hook called last with the representation"
    )
    query: Optional[str] = Field(
        None,
        description="Query template appended to the self href and to configured links"
    )
    absolute: Optional[bool] = Field(
        None,
        description="Build the self href as a full URL"
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("ignore", mode="before")
    @classmethod
    def coerce_ignore(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @classmethod
    def coerce(cls, config: Union[None, Callable[..., Any], dict, "RepresentationConfig"]) -> "RepresentationConfig":
        """Accepts a config object, a mapping, a bare prepare function or None"""
        if config is None:
            return cls()
        if isinstance(config, RepresentationConfig):
            return config
        if callable(config):
            return cls(prepare=config)
        return cls.model_validate(config)


class EmbeddedConfig(RepresentationConfig):
    """An embedded declaration, itself a configuration for the embedded representations"""
    path: Optional[str] = Field(
        None,
        description="Dotted path of the embedded value in the parent entity"
    )
    href: Optional[Union[str, Callable[..., str]]] = Field(
        None,
        description="Self href of each embedded item, templated against {self, item}"
    )


RepresentationConfig.model_rebuild()
EmbeddedConfig.model_rebuild()
