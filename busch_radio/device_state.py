#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The reachability/power state of a radio, and the record that an agent keeps about the
one radio it manages.

Transitions are guarded so that less specific information never overwrites more
specific information:

  * "online" (the radio answered) does not replace "on" or "off" (the radio told us its power state).
  * "host_error" (the configured host name did not resolve) is only cleared by "offline".

Entering "online" always refreshes the last-acknowledgment time, even when the
transition itself is rejected; the poll scheduler relies on this for dead-peer detection.
"""

from __future__ import annotations

from enum import Enum

from .internal_types import *

class DeviceStatus(Enum):
    OFFLINE = 'offline'
    HOST_ERROR = 'host_error'
    ONLINE = 'online'
    ON = 'on'
    OFF = 'off'

    def __str__(self) -> str:
        return self.value

def is_transition_allowed(current: DeviceStatus, new: DeviceStatus) -> bool:
    """Returns True if a device in state current may move to state new."""
    if current == DeviceStatus.HOST_ERROR:
        return new == DeviceStatus.OFFLINE
    if new == DeviceStatus.ONLINE:
        return current == DeviceStatus.OFFLINE
    return True

class DeviceRecord:
    """Everything an agent knows about its radio apart from the published readings."""

    identity: str
    """The identity token sent in the ID: line of every request and echoed by the radio."""

    status: DeviceStatus = DeviceStatus.OFFLINE
    """The current reachability/power state."""

    last_ack: Optional[float] = None
    """Event-loop time at which the radio was last known to be alive, or None if never."""

    last_full_update: Optional[float] = None
    """Event-loop time of the last full refresh request, or None if there has been none."""

    next_wake: Optional[float] = None
    """Event-loop time of the pending poll, or None if no poll is scheduled."""

    last_volume: Optional[int] = None
    """The last non-muted volume reported by the radio, used to restore the volume reading on unmute."""

    needs_full_update: bool = True
    """True until a DISCOVER reply is accepted after the address became known or was (re)set; the first
       accepted reply then triggers a full refresh."""

    def __init__(self, identity: str):
        self.identity = identity

    def __str__(self) -> str:
        return f"DeviceRecord({self.identity!r}, status={self.status})"

    def __repr__(self) -> str:
        return str(self)

    def update_status(self, new_status: DeviceStatus, now: float) -> bool:
        """Applies a state transition if it is allowed. Returns True if the status actually changed."""
        if new_status == DeviceStatus.ONLINE:
            self.last_ack = now
        if not is_transition_allowed(self.status, new_status):
            return False
        changed = self.status != new_status
        self.status = new_status
        return changed
