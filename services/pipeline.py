"""
Entity transform pipeline.

Walks a representation tree: the entity's own to_hal hook runs first, then the
configured links and embedded declarations, then the ignore list and the
prepare hook. Each embedded item is transformed recursively with its own
declaration, siblings concurrently. The first failure cancels the remaining
siblings and propagates; no partial tree is returned.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any, Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from models.config import EmbeddedConfig, RepresentationConfig
from services.representation import Representation, Transformable
from utils.errors import HalError, PipelineError, ValidationError
from utils.templates import expand_template, get_template_context, is_templated, reach

if TYPE_CHECKING:
    from services.halacious import Halacious


def coerce_config(config: Any) -> RepresentationConfig:
    try:
        return RepresentationConfig.coerce(config)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


async def _call_hook(hook: Callable[..., Any], representation: Representation, name: str) -> Representation:
    """Runs a sync or async hook. A returned Representation replaces the current one"""
    try:
        result = hook(representation)
        if inspect.isawaitable(result):
            result = await result
    except HalError:
        raise
    except Exception as e:
        raise PipelineError(f"{name} failed for {representation.href!r}: {e}") from e

    if isinstance(result, Representation):
        return result
    return representation


def get_href(href: Any, representation: Representation, context: Any) -> Any:
    if callable(href):
        return href(representation, context)
    if isinstance(href, str):
        return expand_template(href, get_template_context(href, context))
    return href


async def gather_or_cancel(coroutines: List[Any]) -> List[Any]:
    """Runs coroutines concurrently; the first error cancels the rest and is re-raised"""
    tasks = [asyncio.ensure_future(coroutine) for coroutine in coroutines]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


# -----------------------------------------------------------------------------
# Pipeline
# -----------------------------------------------------------------------------
async def transform_representation(halacious: "Halacious", config: Any, representation: Representation) -> Representation:
    """Lets the entity transform its own representation, then applies config"""
    entity = representation.entity
    if isinstance(entity, Transformable) and not isinstance(entity, type):
        representation = await _call_hook(entity.to_hal, representation, "to_hal")
    return await configure_representation(halacious, config, representation)


async def configure_representation(halacious: "Halacious", config: Any, representation: Representation) -> Representation:
    config = coerce_config(config)
    entity = representation.entity

    for rel, declared in config.links.items():
        link = halacious.link(declared, representation.href)
        link.href = get_href(link.href, representation, entity)
        link = representation.link(rel, link)
        if config.query and isinstance(link.href, str):
            # resolution strips queries, so the template goes on afterwards
            link.href += config.query
            if is_templated(link.href):
                link.templated = True

    children = []
    for rel, declaration in config.embedded.items():
        children.extend(_embed(halacious, rel, declaration, representation))

    results = await gather_or_cancel([
        transform_representation(halacious, declaration, child)
        for child, declaration in children
    ])
    for (child, _), result in zip(children, results):
        if result is not child:
            _replace_embedded(representation, child, result)

    representation.ignore(config.ignore)

    if config.prepare is not None:
        representation = await _call_hook(config.prepare, representation, "prepare")
    return representation


def _embed(halacious: "Halacious", rel: str, declaration: EmbeddedConfig, representation: Representation):
    """Embeds the declared entity value(s), returning (child, declaration) pairs in source order"""
    if not declaration.path:
        raise PipelineError(
            f'Invalid route "{representation.href}": "embedded" configuration for "{rel}" requires a path'
        )

    entity = representation.entity
    value = reach(entity, declaration.path)
    # an absent or falsy value embeds nothing, while an empty list embeds an empty list
    if not value and not isinstance(value, (list, tuple)):
        return []

    # the embedded data shouldn't also appear in the flat payload
    representation.ignore(declaration.path)

    if isinstance(value, (list, tuple)):
        items = list(value)
        representation.embed(rel, None, [])
    else:
        items = [value]

    children = []
    for item in items:
        href = get_href(declaration.href, representation, {"self": entity, "item": item})
        link = halacious.link(href, representation.href)
        children.append((representation.embed(rel, link, item), declaration))
    return children


def _replace_embedded(representation: Representation, old: Representation, new: Representation) -> None:
    for key, value in representation.embedded.items():
        if value is old:
            representation.embedded[key] = new
            return
        if isinstance(value, list):
            for index, child in enumerate(value):
                if child is old:
                    value[index] = new
                    return
