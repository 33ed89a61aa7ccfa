# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Agent configuration loaded from a JSON document.

A configuration document looks like:

  {
    "version": "1.0.0",
    "name": "Radio1",
    "host": "${env:RADIO_HOST}",
    "attributes": { "timer": 30, "UDPListenPort": 4242 }
  }

Strings may reference the rendering context (see ConfigContext), e.g. ${env:VAR}.
"""

from typing import Optional, Dict, Any, TYPE_CHECKING, TypeVar, Union, overload
from ..internal_types import Jsonable, JsonableDict, JsonableTypes

import json

from ..exceptions import ConfigError
from ..util import full_type
from .attributes import AttributeValue, ATTRIBUTE_DEFAULTS

if TYPE_CHECKING:
  from .context import ConfigContext

_T = TypeVar('_T')

class AgentConfig:
  _template_json_data: Optional[JsonableDict] = None
  _json_data: Optional[JsonableDict] = None
  _context: Optional['ConfigContext'] = None

  name: str = ''
  """The identity token of the agent."""

  host: Optional[str] = None
  """The host name or IP address of the radio, if configured."""

  attributes: Dict[str, AttributeValue]
  """Initial attribute values."""

  def __init__(self):
    self.attributes = {}

  def get_context(self) -> 'ConfigContext':
    result = self._context
    assert not result is None
    return result

  @property
  def config_file(self) -> Optional[str]:
    """The fully qualified pathname of the configuration file from which this AgentConfig
       originated, or None if not from a file"""
    if self._context is None:
      return None
    return self._context.config_file

  def render(self) -> None:
    assert not self._context is None
    rendered = self._context.render_template_json_data(self._template_json_data)
    if not isinstance(rendered, dict):
      raise ConfigError(f"AgentConfig: expected json dict, got {full_type(rendered)}")
    self._json_data = rendered

  def bake(self) -> None:
    self.name = self.get_cfg_property_str('name')
    host = self.get_cfg_property('host', None)
    if not host is None and not isinstance(host, str):
      raise ConfigError(f"AgentConfig: expected property host to be str, got {full_type(host)}")
    self.host = host if host else None
    attributes = self.get_cfg_property_dict('attributes', {})
    self.attributes = {}
    for name, value in attributes.items():
      if not name in ATTRIBUTE_DEFAULTS:
        raise ConfigError(f"AgentConfig: unknown attribute {name}, choose one of {' '.join(ATTRIBUTE_DEFAULTS)}")
      if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConfigError(f"AgentConfig: expected attribute {name} to be str or int, got {full_type(value)}")
      self.attributes[name] = value

  def render_and_bake(self, context: 'ConfigContext') -> None:
    self._context = context.clone()
    self.render()
    self.bake()

  def loads(self, ctx: 'ConfigContext', config_text: str) -> None:
    try:
      self._template_json_data = json.loads(config_text)
    except json.JSONDecodeError as e:
      raise ConfigError(f"AgentConfig: invalid JSON: {e}") from e
    self.render_and_bake(ctx)

  def load_json_data(self, ctx: 'ConfigContext', json_data: JsonableDict) -> None:
    self.loads(ctx, json.dumps(json_data))

  _no_default = object()

  @overload
  def get_cfg_property(self, key: str, default: _T) -> Union[Jsonable, _T]: pass

  @overload
  def get_cfg_property(self, key: str) -> Jsonable: pass

  def get_cfg_property(self, key: str, default = _no_default):
    if not isinstance(self._json_data, dict):
      raise ConfigError(f"AgentConfig: Expected config data {key} to be dict, got {type(self._json_data)}")
    result = self._json_data.get(key, default)
    if result is self._no_default:
      raise ConfigError(f"AgentConfig: Property {key} does not exist and has no default")
    if not result is None and not isinstance(result, JsonableTypes):
      raise ConfigError(f"AgentConfig: Expected property {key} to be JSON-able, got {type(result)}")
    return result

  @overload
  def get_cfg_property_str(self, key: str, default: _T) -> Union[str, _T]: pass

  @overload
  def get_cfg_property_str(self, key: str) -> str: pass

  def get_cfg_property_str(self, key: str, default: Any=_no_default):
    result = self.get_cfg_property(key, default)
    if not isinstance(result, str):
      raise ConfigError(f"AgentConfig: Expected property {key} to be str, got {type(result)}")
    return result

  @overload
  def get_cfg_property_dict(self, key: str, default: _T) -> Union[JsonableDict, _T]: pass

  @overload
  def get_cfg_property_dict(self, key: str) -> JsonableDict: pass

  def get_cfg_property_dict(self, key: str, default: Any=_no_default):
    result = self.get_cfg_property(key, default)
    if not isinstance(result, dict):
      raise ConfigError(f"AgentConfig: Expected property {key} to be dict, got {type(result)}")
    return result
