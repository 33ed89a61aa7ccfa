#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Test doubles for the event loop and the UDP transport of a RadioAgent."""

from __future__ import annotations

from typing import Optional, List, Tuple, Dict, Callable, Any

from busch_radio import RadioDatagram, TransportError

class FakeTimerHandle:
    def __init__(self, when: float, callback: Callable[..., None], args: Tuple[Any, ...]):
        self._when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def when(self) -> float:
        return self._when

    def cancel(self) -> None:
        self.cancelled = True

class FakeLoop:
    """The parts of an asyncio event loop that the agent uses, with a manually advanced clock."""

    def __init__(self, now: float=1000.0):
        self._now = now
        self.timers: List[FakeTimerHandle] = []
        self.readers: Dict[int, Callable[..., None]] = {}

    def time(self) -> float:
        return self._now

    def call_at(self, when: float, callback: Callable[..., None], *args: Any) -> FakeTimerHandle:
        handle = FakeTimerHandle(when, callback, args)
        self.timers.append(handle)
        return handle

    def add_reader(self, fd: int, callback: Callable[..., None], *args: Any) -> None:
        self.readers[fd] = callback

    def remove_reader(self, fd: int) -> bool:
        return self.readers.pop(fd, None) is not None

    @property
    def pending(self) -> List[FakeTimerHandle]:
        return [ h for h in self.timers if not h.cancelled ]

    def next_wake(self) -> Optional[float]:
        pending = self.pending
        if len(pending) == 0:
            return None
        return min(h.when() for h in pending)

    def advance(self, seconds: float) -> None:
        """Moves the clock forward, running every timer that becomes due, in order."""
        end = self._now + seconds
        while True:
            due = [ h for h in self.pending if h.when() <= end ]
            if len(due) == 0:
                break
            handle = min(due, key=lambda h: h.when())
            self.timers.remove(handle)
            self._now = max(self._now, handle.when())
            handle.callback(*handle.args)
        self._now = end

class SentDatagram:
    def __init__(self, address: str, port: int, data: bytes, broadcast: bool):
        self.address = address
        self.port = port
        self.data = data
        self.broadcast = broadcast
        self.datagram = RadioDatagram(raw_data=data)

    @property
    def command(self) -> Optional[str]:
        return self.datagram.command

    @property
    def verb_line(self) -> Optional[str]:
        return self.datagram.verb_line

    def __repr__(self) -> str:
        return f"SentDatagram({self.address}:{self.port}, {self.data!r}, broadcast={self.broadcast})"

class FakeTransport:
    """Records sent datagrams instead of putting them on the network."""

    def __init__(self):
        self.sent: List[SentDatagram] = []
        self.listen_port: Optional[int] = None
        self.listener_starts: List[int] = []
        self.fail_bind = False
        self.fail_send = False

    @property
    def is_listening(self) -> bool:
        return self.listen_port is not None

    def start_listener(self, port: int) -> None:
        self.stop_listener()
        if self.fail_bind:
            raise TransportError(f"Cannot open UDP listener on port {port}: address in use")
        self.listen_port = port
        self.listener_starts.append(port)

    def stop_listener(self) -> None:
        self.listen_port = None

    def _send(self, address: str, port: int, data: bytes, broadcast: bool) -> None:
        if self.fail_send:
            raise TransportError(f"Error sending UDP datagram to {address}:{port}: network unreachable")
        self.sent.append(SentDatagram(address, port, data, broadcast))

    def send_unicast(self, address: str, port: int, data: bytes) -> None:
        self._send(address, port, data, False)

    def send_broadcast(self, address: str, port: int, data: bytes) -> None:
        self._send(address, port, data, True)

    def requests(self) -> List[Tuple[Optional[str], Optional[str]]]:
        """Returns (command, verb line) of each sent datagram, e.g. ('GET', 'VOLUME')."""
        return [ (s.command, s.verb_line) for s in self.sent ]

    def clear(self) -> None:
        self.sent = []

def reply(command: str, *lines: str, identity: Optional[str]='Radio1', ack: bool=True) -> bytes:
    """Builds a datagram as the radio sends it: COMMAND, ID and RESPONSE first, then the given lines."""
    parts = [ f"COMMAND:{command}" ]
    if identity is not None:
        parts.append(f"ID:{identity}")
    if ack:
        parts.append("RESPONSE:ACK")
    parts.extend(lines)
    return '\r\n'.join(parts + ['', '']).encode('utf-8')

def notification(event: str, ip: str='10.0.0.5') -> bytes:
    return reply('NOTIFICATION', f"IP:{ip}", f"EVENT:{event}", identity=None)

RADIO_ADDR = ('10.0.0.5', 4244)
