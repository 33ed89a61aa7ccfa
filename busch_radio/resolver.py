#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
AddressResolver -- keeps track of where the radio is.

The radio's address comes from two places: the optional "host" attribute, which is
resolved once when it is set, and DISCOVER replies, which may carry a new address after
a DHCP lease change. A discovery reply is only believed if it plausibly comes from
our radio: we have no address yet, the address matches, or the advertised name matches
the device name we already know.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .exceptions import ResolutionError
from .device_state import DeviceStatus
from .radio_datagram import RadioDatagram
from .util import resolve_host, get_broadcast_address

if TYPE_CHECKING:
    from .agent import RadioAgent

class AddressResolver:
    agent: RadioAgent

    def __init__(self, agent: RadioAgent):
        self.agent = agent

    def set_host(self, address: Optional[str]) -> None:
        """Sets the host name or IP address of the radio. An empty address forgets the current address.

        Raises ResolutionError if the address cannot be resolved; the device is left in state host_error.
        """
        agent = self.agent
        if not address:
            agent.readings.update('ip_address', '', notify_immediately=True)
            agent.record.needs_full_update = True
            agent.update_state(DeviceStatus.OFFLINE)
            return
        ip = resolve_host(address)
        if ip is None:
            error = f"cannot resolve address: {address}"
            logger.warning(f"{agent.name}: {error}")
            agent.update_state(DeviceStatus.HOST_ERROR)
            raise ResolutionError(error)
        agent.readings.update('ip_address', ip, notify_immediately=True)
        agent.record.needs_full_update = True
        broadcast_address = get_broadcast_address(ip)
        agent.attributes.set_silently('broadcastAddress', broadcast_address)
        logger.info(f"{agent.name}: host {address} resolved to {ip}, broadcast address {broadcast_address}")
        agent.update_state(DeviceStatus.OFFLINE)
        agent.scheduler.schedule(0, force=True)

    def is_reply_from_device(self, datagram: RadioDatagram) -> bool:
        """Returns True if a DISCOVER reply should be believed to come from our radio."""
        readings = self.agent.readings
        known_ip = readings.get_str('ip_address')
        if known_ip == '' or datagram.ip == known_ip:
            return True
        device_name = readings.get_str('device_name')
        return device_name != '' and datagram.name == device_name

    def process_discovery_reply(self, datagram: RadioDatagram) -> bool:
        """Reconciles a DISCOVER reply with what we know about the radio. Returns True if the reply was accepted."""
        agent = self.agent
        if agent.record.status == DeviceStatus.HOST_ERROR:
            # with an unresolvable host we cannot tell whether the reply is for us
            logger.warning(f"{agent.name}: received DISCOVER reply from {datagram.ip} but host is not valid; ignoring")
            return False
        if not self.is_reply_from_device(datagram):
            logger.debug(f"{agent.name}: ignoring DISCOVER reply from other device {datagram.name!r} at {datagram.ip}")
            return False
        first_discovery = agent.record.needs_full_update
        agent.record.needs_full_update = False
        agent.dispatcher.update_readings('DISCOVER', datagram, mark_online=True)
        if first_discovery:
            logger.info(f"{agent.name}: discovered radio {datagram.name!r} at {datagram.ip}")
            agent.dispatcher.get('update_info')
        return True
