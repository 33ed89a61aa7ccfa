#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RadioSocket -- the UDP transport of a radio agent. It can:

  1. Send a datagram to a unicast or broadcast address (fire-and-forget, no retries)
  2. Listen on a fixed local port and hand every received datagram to a callback

  The listener socket is registered with the event loop's readiness mechanism
  (loop.add_reader()); every time it is readable exactly one datagram is read.
  Starting the listener always stops any previous one first, so a port change
  never leaves an orphaned socket or a duplicate registration.
"""

from __future__ import annotations

import asyncio
import socket

from .internal_types import *
from .pkg_logging import logger
from .exceptions import TransportError
from .constants import MAX_DATAGRAM_SIZE
from .util import escape_for_log

DatagramHandler = Callable[[HostAndPort, bytes], None]
"""A callback for received datagrams: (source address, raw data)."""

class RadioSocket:
    """The sending and receiving UDP sockets of one radio agent."""

    loop: asyncio.AbstractEventLoop
    """The event loop with which the listener socket is registered."""

    datagram_handler: DatagramHandler
    """Called with (addr, data) for every datagram received on the listener socket."""

    listen_sock: Optional[socket.socket] = None
    """The bound listener socket, or None if not listening."""

    listen_port: Optional[int] = None
    """The local port the listener socket is bound to, or None if not listening."""

    def __init__(self, loop: asyncio.AbstractEventLoop, datagram_handler: DatagramHandler):
        self.loop = loop
        self.datagram_handler = datagram_handler

    def __str__(self) -> str:
        return f"RadioSocket(listen_port={self.listen_port})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def is_listening(self) -> bool:
        return not self.listen_sock is None

    def start_listener(self, port: int) -> None:
        """(Re)starts the listener on a local UDP port. Raises TransportError if the port cannot be bound;
           in that case no listener is running afterwards."""
        self.stop_listener()
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(('', port))
            sock.setblocking(False)
            self.loop.add_reader(sock.fileno(), self._on_readable)
        except OSError as e:
            sock.close()
            raise TransportError(f"Cannot open UDP listener on port {port}: {e}") from e
        self.listen_sock = sock
        self.listen_port = port
        logger.info(f"UDP listener started on port {port}")

    def stop_listener(self) -> None:
        """Deregisters and closes the listener socket, if any. After this returns no datagram callback will be made."""
        sock = self.listen_sock
        if sock is None:
            return
        self.listen_sock = None
        port = self.listen_port
        self.listen_port = None
        try:
            self.loop.remove_reader(sock.fileno())
        finally:
            try:
                sock.close()
            except OSError as e:
                logger.error(f"Error closing UDP listener on port {port}: {e}")
        logger.info(f"UDP listener on port {port} stopped")

    def _on_readable(self) -> None:
        sock = self.listen_sock
        if sock is None:
            return
        try:
            data, addr = sock.recvfrom(MAX_DATAGRAM_SIZE)
        except (BlockingIOError, InterruptedError):
            return
        except OSError as e:
            logger.warning(f"Error receiving on UDP listener port {self.listen_port}: {e}")
            return
        logger.debug(f"Received datagram from {addr}: {escape_for_log(data)}")
        try:
            self.datagram_handler(addr, data)
        except Exception as e:
            logger.warning(f"Error processing datagram from {addr}, raw=[{escape_for_log(data)}]: {e}")

    def sendto(self, data: bytes, addr: HostAndPort, broadcast: bool=False) -> None:
        """Sends one datagram from a fresh socket. Raises TransportError on failure."""
        logger.debug(f"Sending {'broadcast ' if broadcast else ''}datagram to {addr}: {escape_for_log(data)}")
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                if broadcast:
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
                sock.setblocking(False)
                sock.sendto(data, addr)
        except OSError as e:
            raise TransportError(f"Error sending UDP datagram to {addr[0]}:{addr[1]}: {e}") from e

    def send_unicast(self, address: str, port: int, data: bytes) -> None:
        self.sendto(data, (address, port))

    def send_broadcast(self, address: str, port: int, data: bytes) -> None:
        self.sendto(data, (address, port), broadcast=True)
