from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union
from urllib.parse import urljoin, urlsplit, urlunsplit

from pydantic import ValidationError as PydanticValidationError

from config.settings import Settings
from models.link import Link
from utils.errors import MalformedUrlError, ValidationError

logger = logging.getLogger(__name__)

LinkInput = Union[str, Callable[..., str], dict, Link]


def is_relative_path(href: Any) -> bool:
    return isinstance(href, str) and (href.startswith("./") or href.startswith("../"))


def absolutize(href: str, relative_to: str) -> str:
    """Resolves href against relative_to, treating relative_to as a directory"""
    base = relative_to.split("?")[0].strip()
    base = base if base.endswith("/") else base + "/"
    try:
        # urlsplit validates ports and IPv6 brackets that urljoin lets through
        urlsplit(href).port
        urlsplit(base).port
        return urljoin(base, href)
    except ValueError as e:
        raise MalformedUrlError(f'Invalid URL "{href}"') from e


def default_url_builder(settings: Settings, request: Any, pathname: str, search: Optional[str] = None) -> str:
    """
    Composes scheme://host[:port]/pathname[?search].
    Configured overrides win over values taken from the request.
    """
    url = getattr(request, "url", None)
    headers = getattr(request, "headers", None) or {}

    scheme = settings.PROTOCOL or getattr(url, "scheme", None) or "http"
    scheme = scheme.rstrip(":")

    if settings.HOST:
        netloc = settings.HOST
    elif settings.HOSTNAME or settings.PORT:
        hostname = settings.HOSTNAME or getattr(url, "hostname", None) or "localhost"
        port = settings.PORT or getattr(url, "port", None)
        netloc = f"{hostname}:{port}" if port else hostname
    else:
        netloc = headers.get("host") or getattr(url, "netloc", None) or "localhost"

    if pathname and not pathname.startswith("/"):
        pathname = "/" + pathname
    return urlunsplit((scheme, netloc, pathname or "/", (search or "").lstrip("?"), ""))


# -----------------------------------------------------------------------------
# URL Resolver
# -----------------------------------------------------------------------------
class UrlResolver:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._url_builder: Optional[Callable[..., str]] = None

    def set_url_builder(self, url_builder: Callable[..., str]) -> None:
        """Replaces the absolute URL builder: url_builder(request, pathname, search=None)"""
        if not callable(url_builder):
            raise ValidationError("url builder must be callable")
        self._url_builder = url_builder

    def build_absolute_url(self, request: Any, pathname: str, search: Optional[str] = None) -> str:
        if self._url_builder is not None:
            return self._url_builder(request, pathname, search)
        return default_url_builder(self.settings, request, pathname, search)

    def resolve_link(self, link: LinkInput, relative_to: Optional[str] = None) -> Link:
        """
        Normalizes a link input into a Link and resolves its href against relative_to.

        Only './' and '../' hrefs are resolved, unless absolute mode is on, in which
        case every href is. An href that can't be resolved is logged and kept as is.
        """
        link = self.normalize(link)

        relative_to = (relative_to or "").split("?")[0].strip()
        if (
            relative_to
            and isinstance(link.href, str)
            and (is_relative_path(link.href) or self.settings.ABSOLUTE)
        ):
            try:
                link.href = absolutize(link.href, relative_to)
            except MalformedUrlError as e:
                logger.warning("%s, leaving it unresolved", e)

        return link

    @staticmethod
    def normalize(link: LinkInput) -> Link:
        if isinstance(link, Link):
            return link.model_copy()
        if isinstance(link, str) or callable(link):
            link = {"href": link}
        try:
            return Link.model_validate(link)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
