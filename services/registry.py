from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from models.rel import Namespace, Rel
from utils.errors import NotFoundError, UnknownRelError, ValidationError

logger = logging.getLogger(__name__)


def _validate(model, data: Any):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------
class Registry:
    """
    Namespaces and their rels, indexed by namespace name and by prefix.

    In lax mode, an unknown rel under a known namespace is created on first use.
    In strict mode it raises UnknownRelError, which usually points at a typo.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict
        self._by_name: Dict[str, Namespace] = {}
        self._by_prefix: Dict[str, Namespace] = {}

    # -------------------------------------------------------------------------
    # Namespaces
    # -------------------------------------------------------------------------
    def add_namespace(self, config: Union[dict, Namespace]) -> Namespace:
        """Validates and indexes a namespace, scanning its dir for rel documents"""
        if isinstance(config, Namespace):
            config = config.model_dump(exclude={"rels"})
        namespace = _validate(Namespace, dict(config, rels={}))

        if namespace.dir:
            self._scan_directory(namespace, namespace.dir)

        # drop the stale prefix index if the name is being re-registered
        previous = self._by_name.get(namespace.name)
        if previous is not None and self._by_prefix.get(previous.prefix) is previous:
            del self._by_prefix[previous.prefix]

        self._by_name[namespace.name] = namespace
        self._by_prefix[namespace.prefix] = namespace

        logger.debug("Registered namespace %s (%s) with %d rels",
                     namespace.name, namespace.prefix, len(namespace.rels))
        return namespace

    def remove_namespace(self, name: Optional[str] = None) -> None:
        """Removes one namespace, or every namespace when no name is given"""
        if not name:
            self._by_name.clear()
            self._by_prefix.clear()
            return

        namespace = self._by_name.pop(name, None)
        if namespace is not None:
            if self._by_prefix.get(namespace.prefix) is namespace:
                del self._by_prefix[namespace.prefix]
            logger.debug("Removed namespace %s", name)

    def namespace(self, name: str) -> Optional[Namespace]:
        return self._by_name.get(name)

    def namespace_by_prefix(self, prefix: str) -> Optional[Namespace]:
        return self._by_prefix.get(prefix)

    def list_namespaces(self) -> List[Namespace]:
        return sorted(self._by_name.values(), key=lambda namespace: namespace.name)

    # -------------------------------------------------------------------------
    # Rels
    # -------------------------------------------------------------------------
    def add_rel(self, namespace_name: str, config: Union[str, dict, Rel]) -> Rel:
        namespace = self._by_name.get(namespace_name)
        if namespace is None:
            raise NotFoundError(f'Invalid namespace "{namespace_name}"')
        return self._store_rel(namespace, config)

    def find_rel(self, namespace_name: str, rel_name: str) -> Optional[Rel]:
        """Looks up a declared rel without creating it"""
        namespace = self._by_name.get(namespace_name)
        if namespace is None:
            return None
        return namespace.rels.get(rel_name)

    def resolve_rel(self, qualifier: str, name: Optional[str] = None) -> Rel:
        """
        Resolves 'prefix:rel' or (namespace name, rel name) to a Rel.

        Anything that doesn't match a namespace is a global rel such as 'self'
        and comes back as a bare, non-namespaced Rel.
        """
        if not qualifier:
            raise ValidationError(f'Invalid rel "{qualifier}"')

        namespace = None
        rel_name = name
        if name is None:
            if ":" in qualifier:
                prefix, _, rel_name = qualifier.partition(":")
                namespace = self._by_prefix.get(prefix)
        else:
            namespace = self._by_name.get(qualifier)

        if namespace is None:
            return _validate(Rel, {"name": qualifier if name is None else name})

        rel = namespace.rels.get(rel_name)
        if rel is None:
            if self.strict:
                raise UnknownRelError(f'Invalid rel "{qualifier}" ("{rel_name}")')
            logger.debug("Lazily creating rel %s:%s", namespace.prefix, rel_name)
            rel = self._store_rel(namespace, {"name": rel_name})
        return rel

    def list_rels(self) -> List[Rel]:
        rels = [rel for namespace in self._by_name.values() for rel in namespace.rels.values()]
        return sorted(rels, key=lambda rel: rel.name)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _store_rel(self, namespace: Namespace, config: Union[str, dict, Rel]) -> Rel:
        if isinstance(config, Rel):
            config = config.model_dump()
        rel = _validate(Rel, config)
        rel.namespace = namespace
        namespace.rels[rel.name] = rel
        return rel

    def _scan_directory(self, namespace: Namespace, directory: str) -> None:
        path = Path(directory)
        if not path.is_dir():
            raise ValidationError(f'Invalid namespace directory "{directory}"')
        for file in sorted(path.iterdir()):
            if file.is_file():
                self._store_rel(namespace, {"file": str(file)})
