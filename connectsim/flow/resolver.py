"""
Parameter Resolver - turns raw block parameters into values using live call state.

Two mechanisms:
- a parameter with a namespace holds a lookup key rather than a literal
- any text may embed $.<Namespace>.<key> references, substituted in place
"""
import logging
import re
from typing import Any, Optional

from ..models.flow import ModuleParameter, Namespace, SystemKey
from .connector import CallConnector

logger = logging.getLogger(__name__)

# $.Attributes.x refers to the User Defined store, as written in the Connect editor
TEMPLATE_NAMESPACES = {
    "External": Namespace.EXTERNAL,
    "System": Namespace.SYSTEM,
    "Attributes": Namespace.USER_DEFINED,
}

TEMPLATE_PATTERN = re.compile(
    r"\$\.(External|System|Attributes)\.([\w\-]+(?:\.[\w\-]+)*)"
)


def lookup(call: CallConnector, namespace: str, key: str) -> Optional[str]:
    """Read key from the store behind namespace; None on a miss"""
    if namespace == Namespace.EXTERNAL:
        return call.get_external(key)
    if namespace == Namespace.USER_DEFINED:
        return call.get_contact_data(key)
    if namespace == Namespace.SYSTEM:
        try:
            system_key = SystemKey(key)
        except ValueError:
            logger.debug(f"Unknown system key '{key}'")
            return None
        return call.get_system(system_key)

    logger.warning(f"Unknown parameter namespace '{namespace}'")
    return None


def resolve(parameter: ModuleParameter, call: CallConnector) -> Any:
    """
    Resolve a parameter's value.

    Without a namespace the raw value is returned unchanged. With one, the
    value's text is used as a key in that namespace and None means not found.
    """
    if parameter.namespace is None:
        return parameter.value

    key = "" if parameter.value is None else str(parameter.value)
    return lookup(call, parameter.namespace, key)


def interpolate(text: str, call: CallConnector) -> str:
    """Replace every $.<Namespace>.<key> in text, leaving unknown references as written"""
    if not text or "$." not in text:
        return text

    def _replace(match: re.Match) -> str:
        namespace = TEMPLATE_NAMESPACES[match.group(1)]
        value = lookup(call, namespace, match.group(2))
        if value is None:
            return match.group(0)
        return str(value)

    return TEMPLATE_PATTERN.sub(_replace, text)
