#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RadioAgent -- mirrors the state of one Busch-Radio iNet appliance.

The agent combines three independent sources of information about the radio (answers to
its own requests, unsolicited notifications, and discovery replies) into one set of
readings and one device status. All of its work happens synchronously inside event loop
callbacks: socket readiness for received datagrams and a timer for polling.

Usage:

    async with RadioAgent('Radio1', host='10.0.0.5') as agent:
        agent.readings.add_listener(lambda changed: print(changed))
        agent.set('volume', '12')
        await agent.wait_for_done()
"""

from __future__ import annotations

import asyncio
from asyncio import Future

from .internal_types import *
from .pkg_logging import logger
from .exceptions import TransportError, ResolutionError
from .constants import DEFAULT_UDP_LISTEN_PORT, DEFAULT_TIMER
from .config import AttributeStore, AttributeValue
from .config.attributes import to_int
from .device_state import DeviceStatus, DeviceRecord
from .fields import all_reading_names
from .readings import Readings
from .radio_socket import RadioSocket
from .resolver import AddressResolver
from .dispatcher import CommandDispatcher
from .scheduler import PollScheduler
from .controls import RadioControls

def _compute_play_mode_x(readings: Readings) -> str:
    mode = readings.get_str('play_mode')
    if mode == 'radio':
        return f"station_{readings.get_str('play_station')}"
    return mode

def _compute_play_url_x(readings: Readings) -> str:
    return f"{readings.get_str('play_station_name')}|{readings.get_str('play_url')}"

class RadioAgent(AsyncContextManager['RadioAgent']):
    name: str
    """The name of the agent; also the identity token sent with every request."""

    loop: asyncio.AbstractEventLoop
    """The event loop that runs the listener and the poll timer."""

    attributes: AttributeStore
    """User-configurable attributes (host, ports, timers)."""

    readings: Readings
    """The published readings of the radio."""

    record: DeviceRecord
    """Status and bookkeeping for the radio."""

    transport: RadioSocket
    """Sends requests and receives replies and notifications."""

    resolver: AddressResolver
    dispatcher: CommandDispatcher
    scheduler: PollScheduler
    controls: RadioControls

    is_running: bool = False
    """True between start() and stop()."""

    final_result: Optional[Future[None]] = None
    """A future that is set when the agent is stopped, if anybody is waiting for that."""

    def __init__(
            self,
            name: str,
            host: Optional[str]=None,
            loop: Optional[asyncio.AbstractEventLoop]=None,
            attributes: Optional[Union[AttributeStore, Mapping[str, AttributeValue]]]=None,
            transport: Optional[RadioSocket]=None,
          ):
        """Creates an agent. The agent does nothing until start() is called (or the context is entered).

        Parameters:
            name:        The name of the agent, used as identity token.
            host:        The host name or IP address of the radio. If None, the "host" attribute is used, and
                         if that is not set either, the radio is found by broadcast discovery.
            loop:        The event loop to use. Defaults to the running loop.
            attributes:  Initial attribute values, or an AttributeStore.
            transport:   The transport to use. Defaults to a RadioSocket that feeds this agent.
        """
        self.name = name
        self.loop = asyncio.get_running_loop() if loop is None else loop
        if isinstance(attributes, AttributeStore):
            self.attributes = attributes
        else:
            self.attributes = AttributeStore(attributes)
        if not host is None:
            self.attributes.set_silently('host', host)
        self.record = DeviceRecord(name)
        self.readings = Readings({ reading: '' for reading in all_reading_names() })
        self.readings.silent_update({ 'state': str(self.record.status) })
        self.readings.add_derived('play_mode_x', ('play_mode', 'play_station'), _compute_play_mode_x)
        self.readings.add_derived('play_url_x', ('play_station_name', 'play_url'), _compute_play_url_x)
        self.resolver = AddressResolver(self)
        self.dispatcher = CommandDispatcher(self)
        self.scheduler = PollScheduler(self)
        self.controls = RadioControls(self)
        self.transport = RadioSocket(self.loop, self.process_datagram) if transport is None else transport

        self.attributes.set_hook('host', self._on_host_attr)
        self.attributes.set_hook('UDPListenPort', self._on_listen_port_attr)
        self.attributes.set_hook('timer', self._on_timer_attr)
        for int_attr in ('UDPPort', 'fullUpdateInterval'):
            self.attributes.set_hook(int_attr, self._check_int_attr)

    def __str__(self) -> str:
        return f"RadioAgent({self.name!r}, status={self.record.status})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def identity(self) -> str:
        return self.record.identity

    @property
    def status(self) -> DeviceStatus:
        return self.record.status

    def now(self) -> float:
        return self.loop.time()

    def update_state(self, new_status: DeviceStatus) -> bool:
        """Moves the device to a new status if the transition is allowed, and publishes it as the "state"
           reading. Returns True if the status changed."""
        old_status = self.record.status
        changed = self.record.update_status(new_status, self.now())
        if changed:
            logger.info(f"{self.name}: state {old_status} -> {new_status}")
        self.readings.update('state', str(self.record.status))
        return changed

    def process_datagram(self, addr: HostAndPort, data: bytes) -> None:
        """Handles one datagram received from the network."""
        self.dispatcher.process_datagram(addr, data)

    def get(self, option: str) -> None:
        """Requests information from the radio; option is one of status, update_info, discover."""
        self.dispatcher.get(option)

    def set(self, command: str, *args: str) -> None:
        """Runs a user command such as "volume 12" or "play_station 3"."""
        self.controls.set(command, *args)

    def _start_listener(self, port: int) -> None:
        try:
            self.transport.start_listener(port)
        except TransportError as e:
            logger.error(f"{self.name}: {e}")

    def start(self) -> None:
        """Opens the listener, resolves the configured host, and starts polling right away."""
        if self.is_running:
            return
        self.is_running = True
        logger.info(f"{self.name}: starting")
        host = self.attributes.get_str('host')
        if host != '':
            try:
                self.resolver.set_host(host)
            except ResolutionError:
                # already logged; the agent stays in host_error until the host is changed
                pass
        self._start_listener(self.attributes.get_int('UDPListenPort'))
        self.scheduler.schedule(0, force=True)

    def stop(self) -> None:
        """Closes the listener and cancels polling. No callbacks are made after this returns."""
        if self.is_running:
            self.is_running = False
            self.transport.stop_listener()
            self.scheduler.cancel()
            logger.info(f"{self.name}: stopped")
        final_result = self.final_result
        if not final_result is None and not final_result.done():
            final_result.set_result(None)

    async def wait_for_done(self) -> None:
        """Waits until the agent is stopped."""
        if not self.is_running:
            return
        if self.final_result is None:
            self.final_result = asyncio.get_running_loop().create_future()
        await self.final_result

    async def __aenter__(self) -> RadioAgent:
        self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        self.stop()
        return False

    # attribute hooks; a hook rejects a value by raising

    def _on_host_attr(self, name: str, value: Optional[AttributeValue]) -> None:
        self.resolver.set_host(None if value is None else str(value))

    def _on_listen_port_attr(self, name: str, value: Optional[AttributeValue]) -> None:
        port = DEFAULT_UDP_LISTEN_PORT if value is None else to_int(name, value)
        if self.is_running:
            self._start_listener(port)

    def _on_timer_attr(self, name: str, value: Optional[AttributeValue]) -> None:
        timer = DEFAULT_TIMER if value is None else to_int(name, value)
        self.scheduler.on_timer_attr_change(timer)

    def _check_int_attr(self, name: str, value: Optional[AttributeValue]) -> None:
        if not value is None:
            to_int(name, value)
