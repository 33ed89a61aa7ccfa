# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Configuration context.

A ConfigContext is a dict of variables that can be substituted into configuration
documents with string.Template syntax. Environment variables are available as
${env:NAME}, and the location of the configuration file as ${config_file} and
${config_dir}.
"""

from typing import Optional, Dict, Any, TextIO

from ..internal_types import Jsonable

import os
import json
from collections import UserDict
from copy import deepcopy
from string import Template

from ..exceptions import ConfigError
from ..util import full_type
from .base import AgentConfig

class ConfigDict(UserDict):
  pass

class _ContextTemplate(Template):
  # allow ${env:NAME}
  idpattern = r'(?a:[_a-z][_a-z0-9]*(?::[_a-z][_a-z0-9]*)?)'

class ConfigContext(ConfigDict):
  def __init__(self, globals: Optional[Dict[str, Any]]=None, os_environ: Optional[Dict[str, str]]=None):
    super().__init__()
    if not globals is None:
      globals = deepcopy(globals)
      self.update(globals)
    if os_environ is None:
      os_environ = dict(os.environ)
    for k, v in os_environ.items():
      self[f"env:{k}"] = v

  def clone(self) -> 'ConfigContext':
    result = deepcopy(self)
    return result

  def render_template_str(self, template_str: str) -> str:
    t = _ContextTemplate(template_str)
    try:
      result: str = t.substitute(self)
    except (KeyError, ValueError) as e:
      raise ConfigError(f"ConfigContext: cannot render configuration template: {e!r}") from e
    return result

  def render_template_json_data(self, template_json_data: Jsonable) -> Jsonable:
    if isinstance(template_json_data, str):
      return self.render_template_str(template_json_data)
    if isinstance(template_json_data, list):
      return [self.render_template_json_data(x) for x in template_json_data]
    if isinstance(template_json_data, dict):
      return { k: self.render_template_json_data(v) for k, v in template_json_data.items() }
    return template_json_data

  def push_config_file(self, config_file: Optional[str]) -> 'ConfigContext':
    ctx = self.clone()
    ctx.set_config_file(config_file)
    return ctx

  @property
  def config_file(self) -> Optional[str]:
    return self.get('config_file', None)

  @property
  def config_dir(self) -> Optional[str]:
    return self.get('config_dir', None)

  def set_config_file(self, config_file: Optional[str]=None):
    if config_file is None:
      for propname in ['config_file','config_dir']:
        if propname in self:
          del self[propname]
    else:
      config_file = os.path.abspath(os.path.expanduser(config_file))
      self['config_file'] = config_file
      self['config_dir'] = os.path.dirname(config_file)

  def loads(self, s: str) -> AgentConfig:
    try:
      data: Jsonable = json.loads(s)
    except json.JSONDecodeError as e:
      raise ConfigError(f"ConfigContext: invalid JSON: {e}") from e

    if not isinstance(data, dict):
      raise ConfigError(f"ConfigContext: expected json dict, got {full_type(data)}")
    if 'version' in data:
      version_s = data['version']
      if not isinstance(version_s, str):
        raise ConfigError(f"ConfigContext: expected str version, got {full_type(version_s)}")
      try:
        version = tuple(int(x) for x in version_s.split('.'))
      except ValueError as e:
        raise ConfigError(f"ConfigContext: invalid version {version_s!r}") from e
      from .. import __version__ as my_version_s
      my_version = tuple(int(x) for x in my_version_s.split('.'))
      if version > my_version:
        raise ConfigError(f"ConfigContext: configuration version {version_s} is newer than package version {my_version_s}")
    cfg = AgentConfig()
    cfg.load_json_data(self, data)
    return cfg

  def load_json_data(self, data: Jsonable) -> AgentConfig:
    return self.loads(json.dumps(data))

  def load_stream(self, stream: TextIO) -> AgentConfig:
    return self.loads(stream.read())

  def load_file(self, config_file: str) -> AgentConfig:
    ctx = self.push_config_file(config_file)
    try:
      with open(config_file) as f:
        cfg = ctx.load_stream(f)
    except OSError as e:
      raise ConfigError(f"ConfigContext: cannot read configuration file {config_file}: {e}") from e
    return cfg
