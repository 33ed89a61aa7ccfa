#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RadioDiscoveryClient -- a one-shot search for Busch-Radio appliances that can:

  1. Broadcast a DISCOVER request on every local IPv4 interface (or to given broadcast addresses)
  2. Receive and decode the DISCOVER replies, which the radios send to a fixed local port
  3. Collect and return replies received within a configurable timeout period
"""

from __future__ import annotations

import asyncio
import socket
import time
import datetime

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    DEFAULT_UDP_PORT,
    DEFAULT_UDP_LISTEN_PORT,
    DEFAULT_BROADCAST_ADDRESS,
    DEFAULT_DISCOVERY_WAIT_TIME,
  )
from .exceptions import TransportError
from .commands import Verb
from .radio_datagram import RadioDatagram, build_command
from .util import get_local_broadcast_addresses

DEFAULT_DISCOVERY_IDENTITY = 'busch-radio'
"""The identity token sent with discovery requests by the client."""

class RadioDiscoveryInfo:
    src_addr: HostAndPort
    """The source address of the reply"""

    datagram: RadioDatagram
    """The reply datagram"""

    monotonic_time: float
    """The local time (in seconds) since an arbitrary point in the past at which
       the reply was received, as returned by time.monotonic()."""

    utc_time: datetime.datetime
    """The UTC time at which the reply was received."""

    def __init__(self, src_addr: HostAndPort, datagram: RadioDatagram) -> None:
        self.src_addr = src_addr
        self.datagram = datagram
        self.monotonic_time = time.monotonic()
        self.utc_time = datetime.datetime.now(datetime.timezone.utc)

    @property
    def ip(self) -> str:
        """The IP address advertised in the reply, or the source address if it has none."""
        ip = self.datagram.ip
        return self.src_addr[0] if ip is None else ip

    @property
    def name(self) -> Optional[str]:
        return self.datagram.name

    @property
    def app_version(self) -> Optional[str]:
        return self.datagram.get('APP_VERSION')

    def __str__(self) -> str:
        return f"RadioDiscoveryInfo(ip={self.ip}, name={self.name!r})"

    def __repr__(self) -> str:
        return str(self)

class _DiscoveryProtocol(asyncio.DatagramProtocol):
    client: RadioDiscoveryClient

    def __init__(self, client: RadioDiscoveryClient):
        self.client = client

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.client.datagram_received(addr, data)

    def error_received(self, exc: Exception) -> None:
        logger.debug(f"Discovery socket error: {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self.client.end_of_stream()

class RadioDiscoveryClient(
        AsyncContextManager['RadioDiscoveryClient'],
        AsyncIterable[RadioDiscoveryInfo]
      ):
    """Broadcasts one DISCOVER request and returns the replies as they arrive.

    Usage:
        async with RadioDiscoveryClient(response_wait_time=2.0) as client:
            async for info in client:
                print(info.ip, info.name)
                # It is possible to break out of the loop early; e.g., when the wanted radio has answered.
    """

    response_wait_time: float
    """The amount of time (in seconds) to wait for replies to come in."""

    max_responses: int
    """The maximum number of replies to return; 0 means no limit."""

    listen_port: int
    """The local port the radios send their replies to."""

    port: int
    """The port the radios listen on for requests."""

    broadcast_addresses: List[str]
    """The addresses the DISCOVER request is sent to."""

    identity: str
    """The identity token sent in the request."""

    end_time: float = 0.0

    _transport: Optional[asyncio.DatagramTransport] = None
    _queue: Optional[asyncio.Queue[Optional[RadioDiscoveryInfo]]] = None
    """Replies received so far, terminated by None at end of stream. Created on first use, from the running loop."""

    def __init__(
            self,
            response_wait_time: float=DEFAULT_DISCOVERY_WAIT_TIME,
            max_responses: int=0,
            listen_port: int=DEFAULT_UDP_LISTEN_PORT,
            port: int=DEFAULT_UDP_PORT,
            broadcast_addresses: Optional[Iterable[str]]=None,
            identity: str=DEFAULT_DISCOVERY_IDENTITY,
          ) -> None:
        """
        Parameters:
            response_wait_time:   The amount of time (in seconds) to wait for replies.
            max_responses:        The maximum number of replies to return. If 0 (the default), all replies received
                                    within response_wait_time will be returned.
            listen_port:          The local UDP port to receive replies on. Defaults to 4242.
            port:                 The UDP port the radios listen on. Defaults to 4244.
            broadcast_addresses:  The broadcast addresses to send the request to. Defaults to the broadcast address
                                    of every local non-loopback interface, or 255.255.255.255 if there is none.
            identity:             The identity token to send with the request.
        """
        self.response_wait_time = response_wait_time
        self.max_responses = max_responses
        self.listen_port = listen_port
        self.port = port
        if broadcast_addresses is None:
            broadcast_addresses = get_local_broadcast_addresses()
        self.broadcast_addresses = list(broadcast_addresses)
        if len(self.broadcast_addresses) == 0:
            self.broadcast_addresses = [DEFAULT_BROADCAST_ADDRESS]
        self.identity = identity

    def _get_queue(self) -> asyncio.Queue[Optional[RadioDiscoveryInfo]]:
        queue = self._queue
        if queue is None:
            queue = asyncio.Queue()
            self._queue = queue
        return queue

    def datagram_received(self, addr: HostAndPort, data: bytes) -> None:
        datagram = RadioDatagram(raw_data=data)
        logger.debug(f"Received datagram from {addr}: {datagram}")
        if not datagram.is_ack or datagram.verb != Verb.DISCOVER:
            return
        self._get_queue().put_nowait(RadioDiscoveryInfo(addr, datagram))

    def end_of_stream(self) -> None:
        self._get_queue().put_nowait(None)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind(('', self.listen_port))
            sock.setblocking(False)
        except OSError as e:
            sock.close()
            raise TransportError(f"Cannot open UDP listener on port {self.listen_port}: {e}") from e
        return sock

    async def __aenter__(self) -> RadioDiscoveryClient:
        loop = asyncio.get_running_loop()
        self._get_queue()
        sock = self._create_socket()
        untyped_transport, _ = await loop.create_datagram_endpoint(lambda: _DiscoveryProtocol(self), sock=sock)
        transport: asyncio.DatagramTransport = untyped_transport # type: ignore[assignment]
        self._transport = transport
        try:
            data = build_command(Verb.DISCOVER.value, [''], self.identity)
            for address in self.broadcast_addresses:
                logger.debug(f"Broadcasting DISCOVER to {address}:{self.port}")
                transport.sendto(data, (address, self.port))
            self.end_time = time.monotonic() + self.response_wait_time
        except BaseException:
            # a failed __aenter__ is not paired with __aexit__
            self.close()
            raise
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        self.close()
        return False

    def close(self) -> None:
        transport = self._transport
        self._transport = None
        if not transport is None:
            transport.close()

    async def iter_responses(self) -> AsyncIterator[RadioDiscoveryInfo]:
        n = 0
        while True:
            if self.max_responses > 0 and n >= self.max_responses:
                break
            remaining_time = self.end_time - time.monotonic()
            if remaining_time <= 0.0:
                break
            try:
                info = await asyncio.wait_for(self._get_queue().get(), remaining_time)
            except asyncio.TimeoutError:
                break
            if info is None:
                break
            n += 1
            yield info

    def __aiter__(self) -> AsyncIterator[RadioDiscoveryInfo]:
        return self.iter_responses()

async def simple_discover(
        response_wait_time: float=DEFAULT_DISCOVERY_WAIT_TIME,
        max_responses: int=0,
        listen_port: int=DEFAULT_UDP_LISTEN_PORT,
        port: int=DEFAULT_UDP_PORT,
        broadcast_addresses: Optional[Iterable[str]]=None,
      ) -> List[RadioDiscoveryInfo]:
    """Broadcasts a DISCOVER request, waits for a fixed time for replies to come in, and returns them."""
    results: List[RadioDiscoveryInfo] = []
    async with RadioDiscoveryClient(
            response_wait_time=response_wait_time,
            max_responses=max_responses,
            listen_port=listen_port,
            port=port,
            broadcast_addresses=broadcast_addresses,
          ) as client:
        async for info in client:
            results.append(info)
    return results
