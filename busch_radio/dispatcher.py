#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
CommandDispatcher -- the protocol logic of a radio agent.

Outbound, it builds requests and sends them to the radio (or broadcasts them).
Inbound, it classifies every received datagram and applies it to the device state
and the readings:

  * NOTIFICATION datagrams are correlated by the IP: field,
  * DISCOVER replies are handed to the AddressResolver,
  * everything else must echo our identity token in the ID: field.

Only acknowledgments (RESPONSE:ACK) are processed; anything else is discarded.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .exceptions import TransportError, ProtocolMismatch, UnknownEvent, InvalidArgumentError
from .constants import DEFAULT_VOLUME, MUTED_VOLUME
from .commands import Verb, NotificationEvent, SetAction
from .device_state import DeviceStatus
from .fields import STATUS_BLOCKS, FULL_UPDATE_BLOCKS, reading_for_field, translate_value
from .radio_datagram import RadioDatagram, build_command, VERB_LINE_KEY
from .util import escape_for_log

if TYPE_CHECKING:
    from .agent import RadioAgent

GET_OPTIONS: Tuple[str, ...] = ('status', 'update_info', 'discover')
"""The options accepted by CommandDispatcher.get()."""

_power_states: Dict[str, DeviceStatus] = {
    'on': DeviceStatus.ON,
    'off': DeviceStatus.OFF,
}

class CommandDispatcher:
    agent: RadioAgent

    def __init__(self, agent: RadioAgent):
        self.agent = agent

    # ------------------------------------------------------------------
    # outbound

    def send_command(self, command: str, *parameters: str) -> bool:
        """Sends a request to the radio. Returns True if it was sent.

        The target is the "host" attribute if set, otherwise the last known IP address. Nothing is sent
        while the host is unresolvable or no address is known yet.
        """
        agent = self.agent
        target = agent.attributes.get_str('host')
        if agent.record.status == DeviceStatus.HOST_ERROR:
            logger.warning(f"{agent.name}: cannot send {command}: invalid host: {target}")
            return False
        if target == '':
            target = agent.readings.get_str('ip_address')
        if target == '':
            logger.warning(f"{agent.name}: cannot send {command}: no address defined, must discover first")
            return False
        port = agent.attributes.get_int('UDPPort')
        data = build_command(command, parameters, agent.identity)
        try:
            agent.transport.send_unicast(target, port, data)
        except TransportError as e:
            logger.warning(f"{agent.name}: {e}")
            return False
        return True

    def broadcast_command(self, command: str, *parameters: str) -> bool:
        """Broadcasts a request to all radios on the subnet. Returns True if it was sent."""
        agent = self.agent
        address = agent.attributes.get_str('broadcastAddress')
        port = agent.attributes.get_int('UDPPort')
        data = build_command(command, parameters, agent.identity)
        try:
            agent.transport.send_broadcast(address, port, data)
        except TransportError as e:
            logger.warning(f"{agent.name}: {e}")
            return False
        return True

    def get(self, option: str) -> None:
        """Requests information from the radio.

        Options:
            status:       Query the power, playing mode and volume blocks.
            update_info:  Query every block, including device info and the station list.
            discover:     Broadcast a DISCOVER request.
        """
        if option == 'status':
            for block in STATUS_BLOCKS:
                self.send_command(Verb.GET.value, block)
        elif option == 'update_info':
            for block in FULL_UPDATE_BLOCKS:
                self.send_command(Verb.GET.value, block)
        elif option == 'discover':
            self.broadcast_command(Verb.DISCOVER.value, '')
        else:
            raise InvalidArgumentError(f"Unknown argument {option}, choose one of {' '.join(GET_OPTIONS)}")

    # ------------------------------------------------------------------
    # inbound

    def process_datagram(self, addr: HostAndPort, data: bytes) -> None:
        """Handles one datagram received on the listener socket. Never raises for bad payloads."""
        datagram = RadioDatagram(raw_data=data)
        try:
            self.dispatch(datagram)
        except ProtocolMismatch as e:
            logger.debug(f"{self.agent.name}: discarding datagram from {addr}: {e}")
        except UnknownEvent as e:
            logger.info(f"{self.agent.name}: {e}")

    def dispatch(self, datagram: RadioDatagram) -> None:
        """Applies a parsed datagram.

        Raises ProtocolMismatch if it is not an acknowledgment with a recognized verb, and UnknownEvent for a
        notification with an unrecognized event.
        """
        verb = datagram.verb
        if not datagram.is_ack or verb == Verb.UNKNOWN:
            raise ProtocolMismatch(f"not an acknowledgment of a known command: [{escape_for_log(datagram.raw_data)}]")
        if verb == Verb.NOTIFICATION:
            self.process_notification(datagram)
        elif verb == Verb.DISCOVER:
            self.agent.resolver.process_discovery_reply(datagram)
        elif datagram.identity != self.agent.identity:
            # a response for another agent
            return
        elif verb == Verb.GET:
            self.update_readings(datagram.verb_line or '', datagram, mark_online=True)
        else:
            self.agent.update_state(DeviceStatus.ONLINE)
            if verb == Verb.SET:
                self.process_set_ack(datagram)
            # PLAY: the radio is not playing yet; a NOTIFICATION follows when it is

    def update_readings(self, command: str, datagram: RadioDatagram, mark_online: bool=False) -> bool:
        """Applies the mapped fields of a GET or DISCOVER response as one batch. Returns True if any reading changed.

        If mark_online is True the device is moved to "online" within the same batch, so the state change
        is reported in the same notification as the fields.
        """
        agent = self.agent
        readings = agent.readings
        with readings.bulk_update() as batch:
            if mark_online:
                agent.update_state(DeviceStatus.ONLINE)
            for field, raw_value in datagram.items():
                reading = reading_for_field(command, field)
                if reading is None:
                    continue
                value = translate_value(reading, raw_value)
                if reading == 'volume':
                    self.update_volume(value)
                    continue
                readings.update(reading, value)
                if reading == 'power':
                    status = _power_states.get(value)
                    if not status is None:
                        agent.update_state(status)
        return batch.any_changed

    def update_volume(self, value: Union[str, int], notify: Optional[bool]=None) -> bool:
        """Applies a volume value reported by the radio; a negative value means muted.

        If notify is None the updates join the batch that is already open. Otherwise they are applied in
        a batch of their own that notifies only if notify is True. Returns True if anything changed.
        """
        agent = self.agent
        readings = agent.readings
        try:
            volume = int(value)
        except ValueError:
            logger.warning(f"{agent.name}: ignoring non-numeric volume {value!r}")
            return False
        if not notify is None:
            readings.begin_update()
        changed = False
        try:
            if volume < 0:
                changed |= readings.update('volume', MUTED_VOLUME)
                changed |= readings.update('mute', 'on')
            else:
                changed |= readings.update('volume', volume)
                changed |= readings.update('mute', 'off')
                agent.record.last_volume = volume
        finally:
            if not notify is None:
                readings.end_update(notify=notify)
        return changed

    def process_set_ack(self, datagram: RadioDatagram) -> None:
        agent = self.agent
        if VERB_LINE_KEY in datagram:
            action = datagram.set_action
            if action == SetAction.RADIO_ON:
                agent.update_state(DeviceStatus.ON)
                agent.readings.update('power', 'on', notify_immediately=True)
            elif action == SetAction.RADIO_OFF:
                agent.update_state(DeviceStatus.OFF)
                agent.readings.update('power', 'off', notify_immediately=True)
            elif action == SetAction.VOLUME_MUTE:
                self.update_volume(MUTED_VOLUME, notify=True)
            elif action == SetAction.VOLUME_UNMUTE:
                # show the last known volume now; the real one is requested below
                last_volume = agent.record.last_volume
                self.update_volume(DEFAULT_VOLUME if last_volume is None else last_volume, notify=False)
                self.send_command(Verb.GET.value, 'VOLUME')
            else:
                logger.debug(f"{agent.name}: no action for SET acknowledgment {datagram.verb_line!r}")
        elif 'VOLUME_SET' in datagram:
            self.update_volume(datagram['VOLUME_SET'], notify=True)

    def process_notification(self, datagram: RadioDatagram) -> None:
        agent = self.agent
        ip = agent.readings.get_str('ip_address')
        if datagram.ip != ip:
            logger.debug(f"{agent.name}: ignoring notification from other device at {datagram.ip}")
            return
        agent.update_state(DeviceStatus.ONLINE)
        event = datagram.notification_event
        if event == NotificationEvent.SYSTEM_BOOTED:
            self.get('status')
        elif event == NotificationEvent.POWER_ON:
            agent.readings.update('power', 'on', notify_immediately=True)
            agent.update_state(DeviceStatus.ON)
        elif event == NotificationEvent.POWER_OFF:
            agent.readings.update('power', 'off', notify_immediately=True)
            agent.update_state(DeviceStatus.OFF)
        elif event == NotificationEvent.VOLUME_CHANGED:
            agent.update_state(DeviceStatus.ON)
            self.send_command(Verb.GET.value, 'VOLUME')
        elif event in (NotificationEvent.STATION_CHANGED, NotificationEvent.URL_IS_PLAYING):
            agent.update_state(DeviceStatus.ON)
            self.send_command(Verb.GET.value, 'PLAYING_MODE')
        elif event in (NotificationEvent.TUNEIN_INIT_COMPLETE, NotificationEvent.TUNEIN_FAVORITE_CMD_FINISHED):
            pass
        else:
            raise UnknownEvent(f"received unknown NOTIFICATION:{datagram.event}")
