#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
PollScheduler -- the single repeating wake-up of a radio agent.

Every tick does what the current state calls for: while offline, broadcast a discovery
request; while online or on, poll the status (or everything, when a full refresh is due)
and declare the radio dead if it has not answered for DEAD_TIMER seconds; while off or
in host_error, nothing. The radio announces itself when it is powered on again.

Only one wake-up is ever pending. A new one replaces the pending one only if it is
sooner, unless it is forced.
"""

from __future__ import annotations

import asyncio

from .internal_types import *
from .pkg_logging import logger
from .constants import DEAD_TIMER
from .device_state import DeviceStatus

if TYPE_CHECKING:
    from .agent import RadioAgent

class PollScheduler:
    agent: RadioAgent

    _handle: Optional[asyncio.TimerHandle] = None
    """The handle of the pending wake-up, if any."""

    def __init__(self, agent: RadioAgent):
        self.agent = agent

    @property
    def next_wake(self) -> Optional[float]:
        """Event-loop time of the pending wake-up, or None if nothing is scheduled."""
        return self.agent.record.next_wake

    @property
    def is_scheduled(self) -> bool:
        return not self._handle is None

    def schedule(self, delay: float, force: bool=False) -> bool:
        """Arms the wake-up delay seconds from now.

        Unless force is True, nothing happens if the pending wake-up is already due no later than that.
        Returns True if the wake-up was (re)armed. Does nothing while the agent is not running.
        """
        agent = self.agent
        if not agent.is_running:
            return False
        record = agent.record
        when = agent.now() + delay
        if not force and not record.next_wake is None and record.next_wake <= when:
            return False
        self.cancel()
        self._handle = agent.loop.call_at(when, self._on_wake)
        record.next_wake = when
        logger.debug(f"{agent.name}: next poll in {delay} seconds")
        return True

    def cancel(self) -> None:
        """Removes the pending wake-up, if any."""
        handle = self._handle
        self._handle = None
        self.agent.record.next_wake = None
        if not handle is None:
            handle.cancel()

    def on_timer_attr_change(self, timer: int) -> None:
        """Applies a new polling interval. A shorter interval takes effect at once, a longer one at the
           next wake-up, and 0 stops polling."""
        if timer <= 0:
            self.cancel()
        else:
            self.schedule(timer)

    def _on_wake(self) -> None:
        self._handle = None
        self.agent.record.next_wake = None
        try:
            self.tick()
        except Exception as e:
            logger.error(f"{self.agent.name}: error in poll: {e}")

    def tick(self) -> None:
        """Performs one poll and arms the next wake-up."""
        agent = self.agent
        record = agent.record
        dispatcher = agent.dispatcher
        now = agent.now()
        try:
            status = record.status
            if status == DeviceStatus.OFFLINE:
                dispatcher.get('discover')
            elif status in (DeviceStatus.ON, DeviceStatus.ONLINE):
                full_update_interval = agent.attributes.get_int('fullUpdateInterval')
                last_full_update = record.last_full_update
                if full_update_interval > 0 and (last_full_update is None or now - last_full_update >= full_update_interval):
                    dispatcher.get('update_info')
                    record.last_full_update = now
                else:
                    dispatcher.get('status')

                last_ack = record.last_ack
                if not last_ack is None and now - last_ack > DEAD_TIMER:
                    logger.info(f"{agent.name}: no reply for {now - last_ack:.0f} seconds; radio is offline")
                    agent.readings.update('power', 'off', notify_immediately=True)
                    agent.update_state(DeviceStatus.OFFLINE)
            # off, host_error: the radio announces itself when it is powered on
        finally:
            timer = agent.attributes.get_int('timer')
            if timer > 0:
                self.schedule(timer)
