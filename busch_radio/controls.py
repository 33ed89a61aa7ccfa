#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RadioControls -- user-facing set commands, translated into radio requests.

The radio acknowledges every accepted request; readings are only changed when the
acknowledgment (or the notification that follows it) arrives.
"""

from __future__ import annotations

import re

from .internal_types import *
from .pkg_logging import logger
from .exceptions import InvalidArgumentError
from .constants import MAX_VOLUME, NUM_STATIONS
from .commands import Verb
from .device_state import DeviceStatus
from .fields import station_name_reading

if TYPE_CHECKING:
    from .agent import RadioAgent

PLAY_MODES: Tuple[str, ...] = ('radio', 'tunein', 'upnp', 'aux')
"""The arguments accepted by the play_mode command."""

_url_name_re = re.compile(r'^(?:(?P<name>[^|]*)\|)?(?P<url>[^|]+)$')
_url_host_re = re.compile(r'^(?:.*://)?(?P<host>[^/:]+)(?::[0-9]+)?(?:/.*)?$')
_station_re = re.compile(r'^station_(?P<station>[1-9][0-9]*)$')

def parse_url_name(url_name: str) -> Tuple[str, str]:
    """Splits "[<name>|]<url>" into (name, url). A missing name defaults to the host part of the URL.

    Raises InvalidArgumentError if there is no URL.
    """
    m = _url_name_re.match(url_name)
    if not m:
        raise InvalidArgumentError(f"Invalid argument '{url_name}' (expected: [<name>|]<url>)")
    url = m.group('url')
    name = m.group('name')
    if not name:
        m_host = _url_host_re.match(url)
        name = url if m_host is None else m_host.group('host')
    return name, url

def _parse_station(value: str) -> Optional[int]:
    try:
        station = int(value)
    except ValueError:
        return None
    if station < 1 or station > NUM_STATIONS:
        return None
    return station

class RadioControls:
    agent: RadioAgent

    _handlers: Dict[str, Callable[..., None]]

    def __init__(self, agent: RadioAgent):
        self.agent = agent
        self._handlers = {
            'power': self.set_power,
            'on': self.turn_on,
            'off': self.turn_off,
            'volume': self.set_volume,
            'volume_up': self.volume_up,
            'volume_down': self.volume_down,
            'mute': self.set_mute,
            'play_mode': self.set_play_mode,
            'play_mode_x': self.set_play_mode_x,
            'play_station': self.play_station,
            'play_url_x': self.play_url,
            'play_station_name': self.play_station_name,
          }

    @property
    def command_names(self) -> List[str]:
        return list(self._handlers)

    def set(self, command: str, *args: str) -> None:
        """Runs a set command by name. Raises InvalidArgumentError for unknown commands or bad arguments."""
        handler = self._handlers.get(command)
        if handler is None:
            raise InvalidArgumentError(f"Unknown argument {command}, choose one of {' '.join(self._handlers)}")
        logger.debug(f"{self.agent.name}: set {command} {' '.join(args)}")
        handler(*args)

    def _send(self, command: Verb, *parameters: str) -> None:
        self.agent.dispatcher.send_command(command.value, *parameters)

    @staticmethod
    def _require_arg(command: str, args: Sequence[str], expected: str) -> str:
        if len(args) < 1 or args[0] == '':
            raise InvalidArgumentError(f"Missing argument for {command} (expected: {expected})")
        return args[0]

    def set_power(self, *args: str) -> None:
        value = self._require_arg('power', args, 'on | off')
        if value == 'on':
            self.turn_on()
        elif value == 'off':
            self.turn_off()
        else:
            raise InvalidArgumentError(f"Invalid argument '{value}' for power (expected: on | off)")

    def turn_on(self, *args: str) -> None:
        if self.agent.record.status == DeviceStatus.OFFLINE:
            raise InvalidArgumentError("Cannot turn on the device while it is offline. Did you set energy mode to PREMIUM?")
        self._send(Verb.SET, 'RADIO_ON')

    def turn_off(self, *args: str) -> None:
        self._send(Verb.SET, 'RADIO_OFF')

    def set_volume(self, *args: str) -> None:
        value = self._require_arg('volume', args, '<0..100>')
        try:
            volume = int(value)
        except ValueError:
            volume = -1
        if volume < 0 or volume > 100:
            raise InvalidArgumentError(f"Invalid argument '{value}' for volume (valid: <0..100>)")
        self._send(Verb.SET, f"VOLUME_ABSOLUTE:{volume}")

    def _step_volume(self, step: int) -> None:
        volume = self.agent.readings.get_int('volume')
        if volume is None:
            logger.debug(f"{self.agent.name}: volume not known yet; ignoring volume step")
            return
        if volume < 0:
            # muted; step from the volume the radio had before muting
            volume = self.agent.record.last_volume
            if volume is None:
                logger.debug(f"{self.agent.name}: volume before muting not known; ignoring volume step")
                return
        volume += step
        if 0 <= volume <= MAX_VOLUME:
            self._send(Verb.SET, f"VOLUME_ABSOLUTE:{volume}")

    def volume_up(self, *args: str) -> None:
        self._step_volume(1)

    def volume_down(self, *args: str) -> None:
        self._step_volume(-1)

    def set_mute(self, *args: str) -> None:
        value = self._require_arg('mute', args, 'on | off')
        if value == 'on':
            self._send(Verb.SET, 'VOLUME_MUTE')
        elif value == 'off':
            self._send(Verb.SET, 'VOLUME_UNMUTE')
        else:
            raise InvalidArgumentError(f"Invalid argument '{value}' for mute (expected: on | off)")

    def _play_mode(self, command: str, mode: str, explicit_stations: bool) -> None:
        if mode == 'aux':
            self._send(Verb.PLAY, 'AUX')
        elif mode == 'upnp':
            self._send(Verb.PLAY, 'UPNP')
        elif mode == 'tunein':
            self.play_url(self.agent.readings.get_str('play_url_x'))
        elif not explicit_stations and mode == 'radio':
            station = _parse_station(self.agent.readings.get_str('play_station'))
            self._send(Verb.PLAY, f"STATION:{1 if station is None else station}")
        else:
            m = _station_re.match(mode) if explicit_stations else None
            station = None if m is None else _parse_station(m.group('station'))
            if station is None:
                choices = [f"station_{i}" for i in range(1, NUM_STATIONS + 1)] if explicit_stations else ['radio']
                choices += ['tunein', 'upnp', 'aux']
                raise InvalidArgumentError(f"Invalid argument '{mode}' for {command} (expected: {' | '.join(choices)})")
            self._send(Verb.PLAY, f"STATION:{station}")

    def set_play_mode(self, *args: str) -> None:
        mode = self._require_arg('play_mode', args, ' | '.join(PLAY_MODES))
        self._play_mode('play_mode', mode, explicit_stations=False)

    def set_play_mode_x(self, *args: str) -> None:
        mode = self._require_arg('play_mode_x', args, 'tunein | upnp | aux | station_<n>')
        self._play_mode('play_mode_x', mode, explicit_stations=True)

    def play_station(self, *args: str) -> None:
        value = self._require_arg('play_station', args, f"<1..{NUM_STATIONS}>")
        station = _parse_station(value)
        if station is None:
            raise InvalidArgumentError(f"Invalid argument '{value}' for play_station (expected: <1..{NUM_STATIONS}>)")
        self._send(Verb.PLAY, f"STATION:{station}")

    def play_url(self, *args: str) -> None:
        """Plays a stream URL. The argument has the form "[<name>|]<url>"."""
        url_name = self._require_arg('play_url_x', args, '[<name>|]<url>')
        name, url = parse_url_name(url_name)
        self._send(Verb.PLAY, 'TUNEIN_PLAY', f"URL:{url}", f"TEXT:{name}")

    def play_station_name(self, *args: str) -> None:
        self._require_arg('play_station_name', args, '<name>')
        station_name = ' '.join(args)
        readings = self.agent.readings
        for station in range(1, NUM_STATIONS + 1):
            if readings.get_str(station_name_reading(station)) == station_name:
                self._send(Verb.PLAY, f"STATION:{station}")
                return
        raise InvalidArgumentError(f"Invalid argument '{station_name}' for play_station_name (expected: <name>)")
