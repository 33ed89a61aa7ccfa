# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

DEFAULT_UDP_PORT = 4244
"""The UDP port on which the radio accepts commands."""

DEFAULT_UDP_LISTEN_PORT = 4242
"""The local UDP port on which replies and notifications from the radio are received."""

DEFAULT_BROADCAST_ADDRESS = "255.255.255.255"
"""The broadcast address used for discovery until a better one is derived from the host address."""

DEFAULT_TIMER = 60
"""The default status poll interval, in seconds. 0 disables polling."""

DEFAULT_FULL_UPDATE_INTERVAL = 60 * 60 * 24
"""The default interval between full readings refreshes, in seconds (once a day). 0 disables full refreshes."""

DEAD_TIMER = 60
"""If a device that is believed to be on has not acknowledged anything for this many seconds,
   it is considered offline."""

MAX_DATAGRAM_SIZE = 4096
"""The maximum number of bytes read from the listener socket per datagram."""

DEFAULT_VOLUME = 16
"""The volume assumed when unmuting a radio whose last non-muted volume is unknown."""

MUTED_VOLUME = -1
"""Sentinel volume value reported by the radio (and stored in the volume reading) while muted."""

MAX_VOLUME = 31
"""The highest volume step supported by the radio."""

NUM_STATIONS = 8
"""The number of station presets on the radio."""

DEFAULT_DISCOVERY_WAIT_TIME = 3.0
"""The default amount of time (in seconds) that the discovery client waits for replies."""
