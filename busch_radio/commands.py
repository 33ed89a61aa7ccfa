#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The vocabulary of the Busch-Radio UDP protocol: command verbs, notification events,
and the actions that are acknowledged by SET commands.

Every enumeration has an UNKNOWN member; values that are not recognized map to it
rather than raising, and the raw string remains available on the datagram.
"""

from __future__ import annotations

from enum import Enum

from .internal_types import *

class Verb(Enum):
    """The value of the COMMAND: line of a request or response."""
    UNKNOWN = ''
    GET = 'GET'
    SET = 'SET'
    PLAY = 'PLAY'
    DISCOVER = 'DISCOVER'
    NOTIFICATION = 'NOTIFICATION'

    @classmethod
    def from_wire(cls, value: Optional[str]) -> Verb:
        """Returns the Verb for a COMMAND: value. Returns Verb.UNKNOWN if the verb is not recognized."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN

class NotificationEvent(Enum):
    """The value of the EVENT: line of an unsolicited NOTIFICATION."""
    UNKNOWN = ''
    SYSTEM_BOOTED = 'SYSTEM_BOOTED'
    POWER_ON = 'POWER_ON'
    POWER_OFF = 'POWER_OFF'
    VOLUME_CHANGED = 'VOLUME_CHANGED'
    STATION_CHANGED = 'STATION_CHANGED'
    URL_IS_PLAYING = 'URL_IS_PLAYING'
    TUNEIN_INIT_COMPLETE = 'TUNEIN_INIT_COMPLETE'
    TUNEIN_FAVORITE_CMD_FINISHED = 'TUNEIN_FAVORITE_CMD_FINISHED'

    @classmethod
    def from_wire(cls, value: Optional[str]) -> NotificationEvent:
        """Returns the NotificationEvent for an EVENT: value. Returns NotificationEvent.UNKNOWN if the
           event is not recognized."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN

class SetAction(Enum):
    """The verb line of a SET command, echoed back in its acknowledgment."""
    UNKNOWN = ''
    RADIO_ON = 'RADIO_ON'
    RADIO_OFF = 'RADIO_OFF'
    VOLUME_MUTE = 'VOLUME_MUTE'
    VOLUME_UNMUTE = 'VOLUME_UNMUTE'

    @classmethod
    def from_wire(cls, value: Optional[str]) -> SetAction:
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN
