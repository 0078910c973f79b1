"""
URI template helpers.

Hrefs such as '/people/{id}' or '/people/{self.boss.id}' are expanded against
an entity (or a {self, item} context for embedded declarations). Deep tokens
are flattened into a single level mapping keyed by the variable name before
expansion, so '{foo.a.b}' reads context['foo']['a']['b'].
"""
from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

from uritemplate import URITemplate

TOKEN = re.compile(r"\{([^{}]+)\}")

OPERATORS = "+#./;?&"

_MISSING = object()


def is_templated(href: Any) -> bool:
    return isinstance(href, str) and TOKEN.search(href) is not None


def reach(context: Any, path: Optional[str]) -> Any:
    """Dotted lookup over mappings and attributes; None when a segment is missing"""
    value = context
    for segment in str(path or "").split("."):
        if not segment:
            continue
        if isinstance(value, Mapping):
            value = value.get(segment, _MISSING)
        else:
            value = getattr(value, segment, _MISSING)
        if value is _MISSING:
            return None
    return value


def variable_names(expression: str) -> List[str]:
    """Variable names of one template expression, without operator, prefix or explode modifiers"""
    if expression and expression[0] in OPERATORS:
        expression = expression[1:]
    names = []
    for spec in expression.split(","):
        name = spec.strip().rstrip("*").split(":")[0]
        if name:
            names.append(name)
    return names


def get_template_context(template: str, context: Any) -> Dict[str, Any]:
    template_context: Dict[str, Any] = {}
    for token in TOKEN.findall(template or ""):
        for name in variable_names(token):
            value = reach(context, name)
            if value:
                if isinstance(value, Mapping):
                    value = dict(value)
                elif not isinstance(value, (list, tuple)):
                    value = str(value)
                template_context[name] = value
    return template_context


def expand_template(template: str, variables: Mapping[str, Any]) -> str:
    """RFC 6570 expansion. Undefined variables expand to nothing"""
    return URITemplate(template).expand(dict(variables))
