from __future__ import annotations

from typing import Any, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote

from config.settings import Settings, settings as default_settings
from models.link import Link
from models.rel import Namespace, Rel
from services import pipeline
from services.registry import Registry
from services.representation import Representation, RepresentationFactory
from services.urls import LinkInput, UrlResolver, absolutize
from utils.errors import NotFoundError
from utils.templates import TOKEN


# openapi_extra keys that expose a route in the API root
HAL_API = "x-hal-api"
HAL_QUERY = "x-hal-query"


# -----------------------------------------------------------------------------
# Halacious
# -----------------------------------------------------------------------------
class Halacious:
    """
    Facade shared by every representation built for one application: rel
    registry, link resolution, named routes and the transform pipeline.
    """

    def __init__(self, settings: Optional[Settings] = None, app: Any = None):
        self.settings = settings or default_settings
        self.app = app
        self.registry = Registry(strict=self.settings.STRICT)
        self.urls = UrlResolver(self.settings)

    # -------------------------------------------------------------------------
    # Namespaces & rels
    # -------------------------------------------------------------------------
    def add_namespace(self, config: Union[dict, Namespace]) -> Namespace:
        return self.registry.add_namespace(config)

    def remove_namespace(self, name: Optional[str] = None) -> None:
        self.registry.remove_namespace(name)

    def add_rel(self, namespace_name: str, config: Union[str, dict, Rel]) -> Rel:
        return self.registry.add_rel(namespace_name, config)

    def namespace(self, name: str) -> Optional[Namespace]:
        return self.registry.namespace(name)

    def namespaces(self) -> List[Namespace]:
        return self.registry.list_namespaces()

    def rels(self) -> List[Rel]:
        return self.registry.list_rels()

    def rel(self, qualifier: str, name: Optional[str] = None) -> Rel:
        return self.registry.resolve_rel(qualifier, name)

    def namespace_url(self, request: Any, namespace: Namespace) -> str:
        """Documentation base path of a namespace, used for its curie"""
        path = f"{self.settings.RELS_PATH}/{namespace.name}"
        if self.settings.ABSOLUTE:
            return self.build_absolute_url(request, path)
        return path

    # -------------------------------------------------------------------------
    # Links & urls
    # -------------------------------------------------------------------------
    def link(self, link: LinkInput, relative_to: Optional[str] = None) -> Link:
        return self.urls.resolve_link(link, relative_to)

    def resolve(self, relative_path: str, relative_to: str) -> str:
        return absolutize(relative_path, relative_to)

    def build_absolute_url(self, request: Any, pathname: str, search: Optional[str] = None) -> str:
        return self.urls.build_absolute_url(request, pathname, search)

    def set_url_builder(self, url_builder) -> None:
        self.urls.set_url_builder(url_builder)

    def route(self, route_name: str, params: Optional[Mapping[str, Any]] = None) -> str:
        """Path to a named route with its path parameters expanded"""
        route = self._find_route(route_name)
        if route is None:
            raise NotFoundError(f'Invalid route "{route_name}"')

        params = params or {}

        def substitute(match) -> str:
            name = match.group(1).split(":")[0]
            if name not in params:
                return match.group(0)
            return quote(str(params[name]), safe="")

        href = TOKEN.sub(substitute, route.path)
        query = (getattr(route, "openapi_extra", None) or {}).get(HAL_QUERY)
        return href + query if query else href

    def api_links(self, request: Any, absolute: bool = False) -> List[Tuple[str, str]]:
        """(rel, href) for every route tagged with openapi_extra x-hal-api"""
        links = []
        for route in getattr(self.app, "routes", []):
            extra = getattr(route, "openapi_extra", None) or {}
            rel = extra.get(HAL_API)
            if not rel:
                continue
            href = route.path
            if absolute:
                href = self.build_absolute_url(request, href)
            if extra.get(HAL_QUERY):
                href += extra[HAL_QUERY]
            links.append((rel, href))
        return links

    def _find_route(self, route_name: str):
        for route in getattr(self.app, "routes", []):
            if getattr(route, "name", None) == route_name:
                return route
        return None

    # -------------------------------------------------------------------------
    # Representations
    # -------------------------------------------------------------------------
    def factory(self, request: Any = None) -> RepresentationFactory:
        return RepresentationFactory(self, request)

    async def transform_representation(self, config: Any, representation: Representation) -> Representation:
        return await pipeline.transform_representation(self, config, representation)

    async def configure_representation(self, config: Any, representation: Representation) -> Representation:
        return await pipeline.configure_representation(self, config, representation)
