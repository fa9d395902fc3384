"""
Typed access to a block's parameter list.

Each runner pulls the parameters it needs through one of these accessors,
which resolve namespaced values and assert the expected type, raising a
named error instead of passing a badly shaped value on.
"""
from typing import Any, List, Optional, Tuple

from ..core.errors import InvalidParameterError, MissingParameterError
from ..models.flow import Module, ModuleParameter
from .connector import CallConnector
from .resolver import interpolate, resolve

_MISSING = object()


class ModuleParameters:
    """Parameter reader bound to one block and the call it runs in"""

    def __init__(self, module: Module, call: CallConnector):
        self.module = module
        self.call = call

    def get(self, name: str) -> Optional[ModuleParameter]:
        return self.module.get_parameter(name)

    def has(self, name: str) -> bool:
        return self.module.get_parameter(name) is not None

    def _missing(self, name: str) -> MissingParameterError:
        return MissingParameterError(name, module_id=self.module.id)

    def value(self, name: str, default: Any = _MISSING) -> Any:
        """Resolved value with no type check"""
        parameter = self.get(name)
        if parameter is None:
            if default is _MISSING:
                raise self._missing(name)
            return default
        return resolve(parameter, self.call)

    def text(self, name: str, default: Any = _MISSING) -> str:
        """
        Text parameter with $. references substituted.

        A namespaced lookup that finds nothing yields an empty string.
        """
        parameter = self.get(name)
        if parameter is None:
            if default is _MISSING:
                raise self._missing(name)
            return default

        value = resolve(parameter, self.call)
        if parameter.namespace is not None and value is None:
            return ""
        if not isinstance(value, str):
            raise self._missing(name)
        return interpolate(value, self.call)

    def boolean(self, name: str, default: Any = _MISSING) -> bool:
        parameter = self.get(name)
        if parameter is None:
            if default is _MISSING:
                raise self._missing(name)
            return default

        value = resolve(parameter, self.call)
        if not isinstance(value, bool):
            raise self._missing(name)
        return value

    def integer(self, name: str, default: Any = _MISSING) -> int:
        """Integer parameter; Connect exports these as either numbers or numeric strings"""
        parameter = self.get(name)
        if parameter is None:
            if default is _MISSING:
                raise self._missing(name)
            return default

        value = resolve(parameter, self.call)
        if value is None or isinstance(value, bool):
            raise self._missing(name)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        try:
            return int(str(value).strip())
        except ValueError:
            raise InvalidParameterError(
                name, value, "not an integer", module_id=self.module.id
            ) from None

    def key_values(self, name: str) -> List[Tuple[str, str]]:
        """Every parameter with this name as (key, resolved value) pairs"""
        pairs = []
        for parameter in self.module.list_parameters(name):
            if not parameter.key:
                raise self._missing(f"{name}.key")
            value = resolve(parameter, self.call)
            if value is None:
                value = ""
            elif isinstance(value, str):
                value = interpolate(value, self.call)
            elif isinstance(value, bool):
                value = "true" if value else "false"
            else:
                value = str(value)
            pairs.append((parameter.key, value))
        return pairs
