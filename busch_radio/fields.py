#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
The field dictionary: how fields of GET/DISCOVER responses map to readings, how
external values are translated to reading values, and which blocks are queried for
status and full refreshes.

Everything in this module is read-only after import.
"""

from __future__ import annotations

from types import MappingProxyType

from .internal_types import *
from .constants import NUM_STATIONS

def _station_fields() -> Dict[str, str]:
    # ALL_STATION_INFO repeats NAME and URL once per station, so the codec suffixes them
    result: Dict[str, str] = {}
    for i in range(NUM_STATIONS):
        suffix = '' if i == 0 else f"_{i}"
        result[f"ALL_STATION_INFO:NAME{suffix}"] = f"station_{i + 1}_name"
        result[f"ALL_STATION_INFO:URL{suffix}"] = f"station_{i + 1}_url"
    return result

READINGS_MAP: Mapping[str, str] = MappingProxyType({
    'INFO_BLOCK:NAME': 'device_name',
    'INFO_BLOCK:MAC': 'mac_address',
    'INFO_BLOCK:SERNO': 'serial_no',
    'INFO_BLOCK:SW-VERSION': 'version',
    'INFO_BLOCK:IPADDR': 'ip_address',
    'INFO_BLOCK:IPMASK': 'ip_netmask',
    'INFO_BLOCK:GATEWAY': 'ip_gateway',
    'INFO_BLOCK:IPMODE': 'ip_mode',                  # ON | OFF
    'INFO_BLOCK:WLAN-FW': 'wifi_version',
    'INFO_BLOCK:SSID': 'wifi_ssid',
    'INFO_BLOCK:COUNTRY': 'country',
    'POWER_STATUS:POWER': 'power',                   # ON | OFF
    'POWER_STATUS:ENERGY_MODE': 'energy_mode',       # STANDBY | ECO | PREMIUM
    'VOLUME:VOLUME_SET': 'volume',                   # 0..31
    'OPERATING_MODE:MODE': 'operating_mode',         # HOTEL | IP-RADIO
    'PLAYING_MODE:PLAYING': 'play_mode',             # STATION | TUNEIN | UPNP | AUX
    'PLAYING_MODE:ID_1': 'play_station',             # the response carries two ID fields
    'PLAYING_MODE:NAME': 'play_station_name',
    'PLAYING_MODE:URL': 'play_url',
    'DISCOVER:IP': 'ip_address',
    'DISCOVER:NAME': 'device_name',
    'DISCOVER:APP_VERSION': 'app_version',
    **_station_fields(),
})
"""Maps '<GET block or DISCOVER>:<field name>' (upper case) to a reading name."""

VALUE_MAPS: Mapping[str, Mapping[str, str]] = MappingProxyType({
    'power': MappingProxyType({ 'ON': 'on', 'OFF': 'off' }),
    'play_mode': MappingProxyType({ 'STATION': 'radio', 'TUNEIN': 'tunein', 'UPNP': 'upnp', 'AUX_IDCOCK': 'aux' }),
})
"""Per-reading translation of external values to reading values."""

STATUS_BLOCKS: Tuple[str, ...] = ('POWER_STATUS', 'PLAYING_MODE', 'VOLUME')
"""The blocks queried by a status refresh."""

FULL_UPDATE_BLOCKS: Tuple[str, ...] = STATUS_BLOCKS + (
    'INFO_BLOCK', 'ALARM_STATUS', 'TUNEIN_PARTNER_ID', 'OPERATING_MODE', 'ALL_STATION_INFO',
  )
"""The blocks queried by a full refresh."""

DERIVED_READINGS: Tuple[str, ...] = ('state', 'mute', 'play_mode_x', 'play_url_x')
"""Readings that are not mapped from a response field."""

def reading_for_field(command: str, field: str) -> Optional[str]:
    """Returns the reading name for a field of a response to a given command/block, or None."""
    return READINGS_MAP.get(f"{command.upper()}:{field.upper()}")

def translate_value(reading: str, value: str) -> str:
    """Translates an external value to its reading value. Values with no translation are returned as-is."""
    value_map = VALUE_MAPS.get(reading)
    if value_map is None:
        return value
    return value_map.get(value.upper(), value)

def all_reading_names() -> List[str]:
    """Returns the names of all declared readings, without duplicates, in a stable order."""
    result: List[str] = []
    for name in list(READINGS_MAP.values()) + list(DERIVED_READINGS):
        if not name in result:
            result.append(name)
    return result

def station_name_reading(station: int) -> str:
    return f"station_{station}_name"
