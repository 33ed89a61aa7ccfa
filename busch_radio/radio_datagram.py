#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of a datagram packet used in the Busch-Radio UDP protocol.

A datagram is a sequence of CRLF (or LF) delimited lines of the form "[<key>:]<value>".
Requests sent to the radio have the fixed framing:

    COMMAND:<verb>
    <param-line>...
    ID:<identity>
    <empty line>

Replies echo the COMMAND and ID lines and add RESPONSE:ACK plus verb-specific fields.
"""

from __future__ import annotations

import re

from .internal_types import *
from .commands import Verb, NotificationEvent, SetAction

from .util import (
    CaseInsensitiveDict,
    split_bytes_at_lf_or_crlf,
    escape_for_log,
)

VERB_LINE_KEY = '_'
"""The key under which a line without a colon (the command/verb line) is stored."""

_line_re = re.compile(r'^(?:(?P<key>[^:]+):)?(?P<value>.+)$')

def parse_fields(data: bytes) -> CaseInsensitiveDict[str]:
    """Parses a raw datagram into an ordered, case-insensitive mapping of field name to value.

    Lines without a "<key>:" prefix are stored under VERB_LINE_KEY. A key that occurs more than once
    is stored with a numeric suffix for each repetition (NAME, NAME_1, NAME_2, ...) in order
    of appearance. Key comparison is case-insensitive, so "NAME" followed by "name" stores the second as name_1.
    Empty lines are skipped; nothing in the payload causes an exception.
    """
    fields: CaseInsensitiveDict[str] = CaseInsensitiveDict()
    for raw_line in split_bytes_at_lf_or_crlf(data):
        line = raw_line.decode('utf-8', errors='replace')
        m = _line_re.match(line)
        if not m:
            continue
        key = m.group('key')
        if key is None:
            key = VERB_LINE_KEY
        unique_key = key
        i = 1
        while unique_key in fields:
            unique_key = f"{key}_{i}"
            i += 1
        fields[unique_key] = m.group('value')
    return fields

def build_command(command: str, parameters: Iterable[str], identity: str) -> bytes:
    """Builds the raw datagram for a request. Parameter lines are emitted verbatim."""
    lines = [f"COMMAND:{command}"] + list(parameters) + [f"ID:{identity}", '', '']
    return '\r\n'.join(lines).encode('utf-8')

class RadioDatagram(Mapping[str, str]):
    """Wrapper for a raw Busch-Radio datagram.

    This class provides parsing and formatting of the line-oriented packets, a read-only dict-like
    interface to the fields, and a few convenient properties for the fields every reply carries.
    """

    _raw_data: bytes
    """The raw UDP datagram contents"""

    _fields: CaseInsensitiveDict[str]
    """The parsed fields, in order of appearance, with duplicate names suffixed."""

    def __init__(
            self,
            command: Optional[str]=None,
            parameters: Optional[Iterable[str]]=None,
            identity: Optional[str]=None,
            raw_data: Optional[bytes]=None,
          ):
        if raw_data is None:
            if command is None or identity is None:
                raise ValueError("Either command and identity, or raw_data must be provided")
            raw_data = build_command(command, [] if parameters is None else parameters, identity)
        else:
            if not (command is None and parameters is None and identity is None):
                raise ValueError("If raw_data is provided, command, parameters, and identity must be None")
            assert isinstance(raw_data, bytes)
        self._raw_data = raw_data
        self._fields = parse_fields(raw_data)

    def __str__(self) -> str:
        return f"RadioDatagram('{escape_for_log(self._raw_data)}')"

    def __repr__(self) -> str:
        return str(self)

    @property
    def raw_data(self) -> bytes:
        """The raw UDP datagram contents"""
        return self._raw_data

    @property
    def fields(self) -> CaseInsensitiveDict[str]:
        """The parsed fields as a CaseInsensitiveDict[str]."""
        return self._fields

    def _get_str(self, name: str) -> Optional[str]:
        result = self._fields.get(name)
        if not isinstance(result, str):
            return None
        return result

    @property
    def command(self) -> Optional[str]:
        """The raw value of the COMMAND: field, or None."""
        return self._get_str('COMMAND')

    @property
    def verb(self) -> Verb:
        """The COMMAND: field as a Verb. Verb.UNKNOWN if missing or not recognized."""
        return Verb.from_wire(self.command)

    @property
    def response(self) -> Optional[str]:
        """The raw value of the RESPONSE: field, or None."""
        return self._get_str('RESPONSE')

    @property
    def is_ack(self) -> bool:
        """True if the datagram carries RESPONSE:ACK."""
        response = self.response
        return not response is None and response.upper() == 'ACK'

    @property
    def identity(self) -> Optional[str]:
        """The identity token echoed in the ID: field, or None."""
        return self._get_str('ID')

    @property
    def verb_line(self) -> Optional[str]:
        """The first line without a key; e.g., the queried block of a GET or the action of a SET."""
        return self._get_str(VERB_LINE_KEY)

    @property
    def set_action(self) -> SetAction:
        """The verb line as a SetAction. SetAction.UNKNOWN if missing or not recognized."""
        return SetAction.from_wire(self.verb_line)

    @property
    def ip(self) -> Optional[str]:
        """The IP: field of DISCOVER replies and notifications, or None."""
        return self._get_str('IP')

    @property
    def name(self) -> Optional[str]:
        """The NAME: field; the advertised device name in DISCOVER replies."""
        return self._get_str('NAME')

    @property
    def event(self) -> Optional[str]:
        """The raw EVENT: field of a notification, or None."""
        return self._get_str('EVENT')

    @property
    def notification_event(self) -> NotificationEvent:
        """The EVENT: field as a NotificationEvent. NotificationEvent.UNKNOWN if missing or not recognized."""
        return NotificationEvent.from_wire(self.event)

    def __getitem__(self, key: str) -> str:
        return self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, RadioDatagram):
            return False
        return self._raw_data == other._raw_data

    def __hash__(self) -> int:
        return hash(self._raw_data)
