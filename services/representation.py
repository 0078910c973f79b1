from __future__ import annotations

import copy
import weakref
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Set, Union, runtime_checkable

from fastapi.encoders import jsonable_encoder

from models.link import Link
from models.rel import Namespace
from utils.templates import is_templated

if TYPE_CHECKING:
    from services.halacious import Halacious


# -----------------------------------------------------------------------------
# Entity capabilities
# -----------------------------------------------------------------------------
@runtime_checkable
class Transformable(Protocol):
    """Entities that build their own links/embeds. May return a replacement representation"""
    def to_hal(self, representation: "Representation") -> Any: ...


@runtime_checkable
class CustomSerializable(Protocol):
    """Entities that control their own JSON payload"""
    def to_json(self) -> Any: ...


def encode(value: Any) -> Any:
    """Converts an entity (or any value inside it) into plain JSON data, honouring to_json()"""
    if isinstance(value, Representation):
        return value.to_json()
    if isinstance(value, CustomSerializable) and not isinstance(value, type):
        return encode(value.to_json())
    if isinstance(value, Mapping):
        return {str(key): encode(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [encode(item) for item in value]
    return jsonable_encoder(value)


def _accumulate(collection: Dict[str, Any], key: str, value: Any) -> None:
    # first value is stored as is, the second turns it into a list
    if key not in collection:
        collection[key] = value
    elif isinstance(collection[key], list):
        collection[key].append(value)
    else:
        collection[key] = [collection[key], value]


# -----------------------------------------------------------------------------
# Representation
# -----------------------------------------------------------------------------
class Representation:
    """
    A HAL wrapper around an entity. Provides an api for adding links and
    recursively embedding child entities.

    Curies for every namespace referenced anywhere in the tree are declared once,
    in the top level _links, so each representation keeps a pointer to the root.
    """

    def __init__(
        self,
        factory: "RepresentationFactory",
        self_link: Link,
        entity: Any = None,
        root: Optional["Representation"] = None,
    ):
        self.factory = factory
        self.entity = {} if entity is None else entity
        self._root = weakref.ref(root) if root is not None else None
        self._links: Dict[str, Union[Link, List[Link]]] = {"self": self_link}
        self._embedded: Dict[str, Union[Representation, List[Representation]]] = {}
        self._namespaces: Dict[str, Namespace] = {}
        self._props: Dict[str, Any] = {}
        self._ignore: Set[str] = set()

    @property
    def halacious(self) -> "Halacious":
        return self.factory.halacious

    @property
    def request(self) -> Any:
        return self.factory.request

    @property
    def root(self) -> "Representation":
        root = self._root() if self._root is not None else None
        return root if root is not None else self

    @property
    def links(self) -> Dict[str, Union[Link, List[Link]]]:
        return self._links

    @property
    def embedded(self) -> Dict[str, Union["Representation", List["Representation"]]]:
        return self._embedded

    @property
    def namespaces(self) -> Dict[str, Namespace]:
        return self._namespaces

    @property
    def props(self) -> Dict[str, Any]:
        return self._props

    @property
    def ignored(self) -> Set[str]:
        return self._ignore

    @property
    def href(self) -> str:
        """The self href"""
        href = self._links["self"].href
        return href if isinstance(href, str) else ""

    def __repr__(self) -> str:
        return f"<Representation {self.href!r}>"

    # -------------------------------------------------------------------------
    # Curies
    # -------------------------------------------------------------------------
    def curie(self, namespace: Optional[Namespace]) -> None:
        """Declares a namespace in the root's curies, once per tree"""
        if namespace is None:
            return

        root = self.root
        if namespace.prefix in root.namespaces:
            return
        root.namespaces[namespace.prefix] = namespace

        namespace_url = self.halacious.namespace_url(self.request, namespace)
        curie = Link(name=namespace.prefix, href=f"{namespace_url}/{{rel}}", templated=True)
        root.links.setdefault("curies", []).append(curie)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    def prop(self, name: str, value: Any) -> "Representation":
        """Adds a custom property to the payload"""
        self._props[name] = value
        return self

    def merge(self, values: Mapping[str, Any]) -> "Representation":
        """Merges a mapping into the custom properties, later calls win"""
        for name, value in values.items():
            self._props[name] = value
        return self

    def ignore(self, *names: Any) -> "Representation":
        """Keeps entity fields (or custom props) out of the payload"""
        if len(names) == 1 and isinstance(names[0], (list, tuple, set)):
            names = tuple(names[0])
        for name in names:
            if name:
                self._ignore.add(name)
        return self

    # -------------------------------------------------------------------------
    # Links
    # -------------------------------------------------------------------------
    def link(self, rel: str, link: Any) -> Union[Link, List[Link]]:
        """Adds a link (or a list of links) under the rel's qualified name"""
        relation = self.halacious.rel(rel)
        key = relation.qname()

        if isinstance(link, list):
            self._links.setdefault(key, [])
            return [self.link(rel, item) for item in link]

        self.curie(relation.namespace)

        link = self.halacious.link(link)
        if callable(link.href):
            link.href = link.href(self, self.entity)
        link = self.halacious.link(link, self.href)
        if is_templated(link.href):
            link.templated = True

        _accumulate(self._links, key, link)
        return link

    def resolve(self, relative_path: str) -> str:
        """Resolves a relative path against the self href"""
        return self.halacious.resolve(relative_path, self.href)

    def route(self, route_name: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Path to a named route, with its path parameters expanded"""
        return self.halacious.route(route_name, params or {})

    # -------------------------------------------------------------------------
    # Embedded
    # -------------------------------------------------------------------------
    def embed(self, rel: str, self_link: Any, entity: Any) -> Union["Representation", List["Representation"]]:
        """Wraps an entity into a new representation under _embedded"""
        relation = self.halacious.rel(rel)
        key = relation.qname()

        self.curie(relation.namespace)

        if isinstance(entity, list):
            self._embedded.setdefault(key, [])
            return [self.embed(rel, self_link, item) for item in entity]

        link = self.halacious.link(self_link, self.href)
        child = self.factory.create(entity, link, self.root)

        _accumulate(self._embedded, key, child)
        return child

    def embed_collection(self, rel: str, self_link: Any, *entities: Any) -> "Representation":
        """Embeds every truthy entity, flattening list arguments"""
        for arg in entities:
            for entity in (arg if isinstance(arg, list) else [arg]):
                if entity:
                    self.embed(rel, copy.deepcopy(self_link), entity)
        return self

    async def configure(self, config: Any) -> "Representation":
        """Applies a route style configuration (links, embedded, ignore, prepare)"""
        return await self.halacious.configure_representation(config, self)

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------
    def to_json(self) -> Dict[str, Any]:
        ignore = self._ignore

        result: Dict[str, Any] = {"_links": {
            key: [link.to_json() for link in value] if isinstance(value, list) else value.to_json()
            for key, value in self._links.items()
        }}

        payload = encode(self.entity)
        if isinstance(payload, Mapping):
            result.update((key, value) for key, value in payload.items() if key not in ignore)

        result.update((key, encode(value)) for key, value in self._props.items() if key not in ignore)

        if self._embedded:
            result["_embedded"] = {
                key: [child.to_json() for child in value] if isinstance(value, list) else value.to_json()
                for key, value in self._embedded.items()
            }

        return result


# -----------------------------------------------------------------------------
# Representation Factory
# -----------------------------------------------------------------------------
class RepresentationFactory:
    """Creates every representation, top level or embedded, needed for one request"""

    def __init__(self, halacious: "Halacious", request: Any = None):
        self.halacious = halacious
        self.request = request

    @property
    def request_path(self) -> Optional[str]:
        url = getattr(self.request, "url", None)
        if url is not None:
            return url.path
        return getattr(self.request, "path", None)

    def create(self, entity: Any = None, self_link: Any = None, root: Optional[Representation] = None) -> Representation:
        """
        Creates a representation for an entity (an empty dict by default).
        self_link defaults to the request path.
        """
        if self_link is None:
            self_link = self.request_path
        link = self.halacious.link(self_link)
        return Representation(self, link, entity, root)
