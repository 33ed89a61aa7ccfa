# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package busch_radio mirrors the state of Busch-Radio iNet WLAN radios.

The radios speak a simple line-oriented protocol over UDP. Requests are sent to port
4244; the radio acknowledges each of them and also sends unsolicited notifications
(power, volume, station changes) to port 4242. A broadcast DISCOVER request makes every
radio on the subnet announce its address and name.

RadioAgent keeps a set of readings consistent with one radio by combining the replies
to its own polls, the notifications, and discovery replies, while tolerating lost
datagrams, radios that come and go, and DHCP address changes.
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    RadioError,
    ResolutionError,
    TransportError,
    ProtocolMismatch,
    UnknownEvent,
    InvalidArgumentError,
    ConfigError,
  )

from .commands import Verb, NotificationEvent, SetAction
from .radio_datagram import RadioDatagram, parse_fields, build_command
from .radio_socket import RadioSocket
from .readings import Readings, ReadingsBatch
from .device_state import DeviceStatus, DeviceRecord, is_transition_allowed
from .config import AttributeStore, AgentConfig, ConfigContext
from .agent import RadioAgent
from .client import RadioDiscoveryClient, RadioDiscoveryInfo, simple_discover
from .util import CaseInsensitiveDict
from .constants import DEFAULT_UDP_PORT, DEFAULT_UDP_LISTEN_PORT, DEFAULT_DISCOVERY_WAIT_TIME

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict',
    'RadioError', 'ResolutionError', 'TransportError', 'ProtocolMismatch', 'UnknownEvent',
    'InvalidArgumentError', 'ConfigError',
    'Verb', 'NotificationEvent', 'SetAction',
    'RadioDatagram', 'parse_fields', 'build_command',
    'RadioSocket',
    'Readings', 'ReadingsBatch',
    'DeviceStatus', 'DeviceRecord', 'is_transition_allowed',
    'AttributeStore', 'AgentConfig', 'ConfigContext',
    'RadioAgent',
    'RadioDiscoveryClient', 'RadioDiscoveryInfo', 'simple_discover',
    'CaseInsensitiveDict',
    'DEFAULT_UDP_PORT', 'DEFAULT_UDP_LISTEN_PORT', 'DEFAULT_DISCOVERY_WAIT_TIME',
]
