# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""User-configurable attributes of a radio agent.

Attributes are a last-write-wins key/value store. Each attribute may have a hook that is
called with the new value before it is stored; a hook rejects a value by raising, in
which case the previous value is kept.
"""

from typing import Optional, Dict, Any, Callable, Mapping, Union, TypeVar, overload

from ..constants import (
    DEFAULT_UDP_PORT,
    DEFAULT_UDP_LISTEN_PORT,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_TIMER,
    DEFAULT_FULL_UPDATE_INTERVAL,
  )
from ..exceptions import ConfigError
from ..util import full_type

AttributeValue = Union[str, int]

AttributeHook = Callable[[str, Optional[AttributeValue]], None]
"""Called with (name, new_value) before an attribute is set; new_value is None when the attribute is deleted."""

ATTRIBUTE_DEFAULTS: Mapping[str, Optional[AttributeValue]] = {
  'host': None,
  'broadcastAddress': DEFAULT_BROADCAST_ADDRESS,
  'UDPPort': DEFAULT_UDP_PORT,
  'UDPListenPort': DEFAULT_UDP_LISTEN_PORT,
  'timer': DEFAULT_TIMER,
  'fullUpdateInterval': DEFAULT_FULL_UPDATE_INTERVAL,
}
"""The recognized attributes and their default values. None means "no default"."""

_T = TypeVar('_T')

def to_int(name: str, value: Any) -> int:
  """Converts an attribute value to int, accepting numeric strings. Raises ConfigError otherwise."""
  result = value
  if isinstance(result, str):
    try:
      result = int(result.strip())
    except ValueError:
      pass
  if not isinstance(result, int) or isinstance(result, bool):
    raise ConfigError(f"Attribute {name}: expected an integer, got {full_type(value)} {value!r}")
  return result

class AttributeStore:
  _values: Dict[str, AttributeValue]
  _hooks: Dict[str, AttributeHook]

  def __init__(self, values: Optional[Mapping[str, AttributeValue]]=None):
    self._values = {}
    self._hooks = {}
    if not values is None:
      for name, value in values.items():
        self._check_name(name)
        self._values[name] = value

  @staticmethod
  def _check_name(name: str) -> None:
    if not name in ATTRIBUTE_DEFAULTS:
      raise ConfigError(f"Unknown attribute {name}, choose one of {' '.join(ATTRIBUTE_DEFAULTS)}")

  def set_hook(self, name: str, hook: Optional[AttributeHook]) -> None:
    """Sets (or, with None, removes) the hook that is called before attribute name changes."""
    self._check_name(name)
    if hook is None:
      self._hooks.pop(name, None)
    else:
      self._hooks[name] = hook

  def set(self, name: str, value: AttributeValue) -> None:
    """Sets an attribute. The hook runs first and may reject the value by raising."""
    self._check_name(name)
    hook = self._hooks.get(name)
    if not hook is None:
      hook(name, value)
    self._values[name] = value

  def set_silently(self, name: str, value: AttributeValue) -> None:
    """Sets an attribute without calling its hook. Used for values that are derived by the agent itself."""
    self._check_name(name)
    self._values[name] = value

  def delete(self, name: str) -> None:
    """Deletes an attribute so that its default applies again. The hook is called with None."""
    self._check_name(name)
    hook = self._hooks.get(name)
    if not hook is None:
      hook(name, None)
    self._values.pop(name, None)

  def is_set(self, name: str) -> bool:
    return name in self._values

  def as_dict(self) -> Dict[str, AttributeValue]:
    return dict(self._values)

  _no_default = object()

  @overload
  def get(self, name: str, default: _T) -> Union[AttributeValue, _T]: pass

  @overload
  def get(self, name: str) -> Optional[AttributeValue]: pass

  def get(self, name: str, default: Any=_no_default):
    """Returns the value of an attribute, or its default. An explicit default overrides the attribute's own."""
    if name in self._values:
      return self._values[name]
    if default is self._no_default:
      self._check_name(name)
      return ATTRIBUTE_DEFAULTS[name]
    return default

  def get_str(self, name: str, default: str='') -> str:
    result = self.get(name)
    if result is None:
      return default
    return str(result)

  def get_int(self, name: str) -> int:
    result = self.get(name)
    if result is None:
      raise ConfigError(f"Attribute {name} is not set and has no default")
    return to_int(name, result)
