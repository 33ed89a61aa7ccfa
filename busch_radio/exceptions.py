#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class RadioError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ResolutionError(RadioError):
  """The configured host name could not be resolved to an IP address."""
  pass

class TransportError(RadioError):
  """A UDP socket could not be opened, bound, or written to."""
  pass

class ProtocolMismatch(RadioError):
  """A received payload is not an acknowledgment addressed to this agent."""
  pass

class UnknownEvent(RadioError):
  """A well-formed notification carried an event this package does not know."""
  pass

class InvalidArgumentError(RadioError):
  """A get/set request named an unknown option or carried an invalid argument."""
  pass

class ConfigError(RadioError):
  """A configuration file or attribute value is malformed."""
  pass
