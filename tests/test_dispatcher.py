#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import logging

import pytest

from busch_radio import DeviceStatus, InvalidArgumentError

from helpers import reply, notification, RADIO_ADDR

def go_on(agent):
    agent.update_state(DeviceStatus.ONLINE)
    agent.update_state(DeviceStatus.ON)

@pytest.fixture
def known_radio(agent, transport):
    """An agent that knows its radio at 10.0.0.5 and considers it on."""
    agent.attributes.set('host', '10.0.0.5')
    go_on(agent)
    transport.clear()
    return agent

class TestOutbound:
    def test_send_uses_host_attribute(self, known_radio, transport):
        assert known_radio.dispatcher.send_command('GET', 'VOLUME')
        sent = transport.sent[0]
        assert (sent.address, sent.port, sent.broadcast) == ('10.0.0.5', 4244, False)
        assert sent.data == b'COMMAND:GET\r\nVOLUME\r\nID:Radio1\r\n\r\n'

    def test_send_falls_back_to_ip_reading(self, agent, transport):
        agent.readings.update('ip_address', '10.0.0.9')
        agent.attributes.set('UDPPort', '5000')
        assert agent.dispatcher.send_command('GET', 'VOLUME')
        assert (transport.sent[0].address, transport.sent[0].port) == ('10.0.0.9', 5000)

    def test_send_refused_without_address(self, agent, transport):
        assert not agent.dispatcher.send_command('GET', 'VOLUME')
        assert transport.sent == []

    def test_send_refused_in_host_error(self, agent, transport):
        agent.readings.update('ip_address', '10.0.0.9')
        agent.update_state(DeviceStatus.HOST_ERROR)
        assert not agent.dispatcher.send_command('GET', 'VOLUME')
        assert transport.sent == []

    def test_transport_error_is_logged_not_raised(self, known_radio, transport, caplog):
        transport.fail_send = True
        with caplog.at_level(logging.WARNING, logger='busch_radio'):
            assert not known_radio.dispatcher.send_command('GET', 'VOLUME')
        assert 'network unreachable' in caplog.text
        assert known_radio.status == DeviceStatus.ON

    def test_get_status_and_update_info(self, known_radio, transport):
        known_radio.get('status')
        assert transport.requests() == [('GET', 'POWER_STATUS'), ('GET', 'PLAYING_MODE'), ('GET', 'VOLUME')]
        transport.clear()
        known_radio.get('update_info')
        assert [v for _, v in transport.requests()] == [
            'POWER_STATUS', 'PLAYING_MODE', 'VOLUME', 'INFO_BLOCK', 'ALARM_STATUS',
            'TUNEIN_PARTNER_ID', 'OPERATING_MODE', 'ALL_STATION_INFO',
          ]

    def test_get_discover_broadcasts(self, agent, transport):
        agent.get('discover')
        sent = transport.sent[0]
        assert (sent.address, sent.port, sent.broadcast) == ('255.255.255.255', 4244, True)
        assert sent.data == b'COMMAND:DISCOVER\r\n\r\nID:Radio1\r\n\r\n'

    def test_get_unknown_option(self, agent):
        with pytest.raises(InvalidArgumentError) as exc_info:
            agent.get('everything')
        assert 'status update_info discover' in str(exc_info.value)

class TestInbound:
    def test_volume_changed_notification_requests_volume_only(self, known_radio, transport, changes):
        known_radio.process_datagram(RADIO_ADDR, notification('VOLUME_CHANGED'))
        assert transport.requests() == [('GET', 'VOLUME')]
        assert changes == []
        assert known_radio.status == DeviceStatus.ON

    def test_notification_from_other_ip_ignored(self, known_radio, transport, changes):
        known_radio.update_state(DeviceStatus.OFF)
        changes.clear()
        known_radio.process_datagram(RADIO_ADDR, notification('POWER_ON', ip='10.0.0.77'))
        assert transport.sent == []
        assert changes == []
        assert known_radio.status == DeviceStatus.OFF

    def test_power_notifications(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, notification('POWER_OFF'))
        assert known_radio.status == DeviceStatus.OFF
        assert changes == [{ 'power': 'off' }, { 'state': 'off' }]
        changes.clear()
        known_radio.process_datagram(RADIO_ADDR, notification('POWER_ON'))
        assert known_radio.readings.get('power') == 'on'
        assert known_radio.status == DeviceStatus.ON

    def test_notification_brings_offline_radio_online(self, known_radio, transport):
        known_radio.record.status = DeviceStatus.OFFLINE
        known_radio.process_datagram(RADIO_ADDR, notification('STATION_CHANGED'))
        assert known_radio.status == DeviceStatus.ON
        assert transport.requests() == [('GET', 'PLAYING_MODE')]

    def test_system_booted_requests_status(self, known_radio, transport):
        known_radio.process_datagram(RADIO_ADDR, notification('SYSTEM_BOOTED'))
        assert [v for _, v in transport.requests()] == ['POWER_STATUS', 'PLAYING_MODE', 'VOLUME']

    def test_tunein_events_need_no_action(self, known_radio, transport):
        known_radio.process_datagram(RADIO_ADDR, notification('TUNEIN_INIT_COMPLETE'))
        assert transport.sent == []

    def test_unknown_event_logged_at_info(self, known_radio, transport, caplog):
        with caplog.at_level(logging.INFO, logger='busch_radio'):
            known_radio.process_datagram(RADIO_ADDR, notification('FIRE_ALARM'))
        assert 'NOTIFICATION:FIRE_ALARM' in caplog.text
        assert transport.sent == []

    def test_non_ack_discarded(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'VOLUME', 'VOLUME_SET:3', ack=False))
        known_radio.process_datagram(RADIO_ADDR, reply('REBOOT', 'X'))
        assert changes == []

    def test_reply_for_other_identity_ignored(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'VOLUME', 'VOLUME_SET:3', identity='Radio2'))
        assert known_radio.readings.get('volume') == ''
        assert changes == []

    def test_get_reply_applied_as_one_batch(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply(
            'GET', 'PLAYING_MODE', 'PLAYING:STATION', 'ID:3', 'NAME:Radio Bob', 'URL:http://bob.example/stream'))
        readings = known_radio.readings
        assert readings.get('play_mode') == 'radio'
        assert readings.get('play_station') == '3'
        assert changes == [{
            'play_mode': 'radio',
            'play_station': '3',
            'play_station_name': 'Radio Bob',
            'play_url': 'http://bob.example/stream',
            'play_mode_x': 'station_3',
            'play_url_x': 'Radio Bob|http://bob.example/stream',
          }]

    def test_reply_to_offline_agent_notifies_once(self, agent, changes):
        agent.attributes.set('host', '10.0.0.5')
        changes.clear()
        agent.process_datagram(RADIO_ADDR, reply('GET', 'POWER_STATUS', 'POWER:ON'))
        assert agent.status == DeviceStatus.ON
        assert changes == [{ 'state': 'on', 'power': 'on' }]

    def test_untranslated_value_kept_verbatim(self, known_radio):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'PLAYING_MODE', 'PLAYING:BLUETOOTH'))
        assert known_radio.readings.get('play_mode') == 'BLUETOOTH'
        assert known_radio.readings.get('play_mode_x') == 'BLUETOOTH'

    def test_power_field_drives_state(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'POWER_STATUS', 'POWER:OFF', 'ENERGY_MODE:PREMIUM'))
        assert known_radio.status == DeviceStatus.OFF
        assert changes == [{ 'power': 'off', 'energy_mode': 'PREMIUM', 'state': 'off' }]

    def test_any_matching_reply_refreshes_last_ack(self, known_radio, loop):
        loop.advance(30)
        known_radio.process_datagram(RADIO_ADDR, reply('PLAY', 'STATION:1'))
        assert known_radio.record.last_ack == loop.time()

    def test_station_list(self, known_radio):
        lines = []
        for i in range(8):
            lines += [f"NAME:Station {i + 1}", f"URL:http://s{i + 1}.example/"]
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'ALL_STATION_INFO', *lines))
        assert known_radio.readings.get('station_1_name') == 'Station 1'
        assert known_radio.readings.get('station_8_url') == 'http://s8.example/'

class TestVolume:
    def test_volume_reply_sets_volume_and_unmutes(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'VOLUME', 'VOLUME_SET:12'))
        assert changes == [{ 'volume': 12, 'mute': 'off' }]
        assert known_radio.record.last_volume == 12

    def test_non_numeric_volume_ignored(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'VOLUME', 'VOLUME_SET:loud'))
        assert changes == []

    def test_mute_then_unmute(self, known_radio, transport, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('GET', 'VOLUME', 'VOLUME_SET:12'))
        changes.clear()

        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'VOLUME_MUTE'))
        assert changes == [{ 'volume': -1, 'mute': 'on' }]
        changes.clear()

        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'VOLUME_UNMUTE'))
        assert changes == []
        assert known_radio.readings.get('volume') == 12
        assert known_radio.readings.get('mute') == 'off'
        assert transport.requests() == [('GET', 'VOLUME')]

    def test_unmute_without_known_volume_uses_default(self, known_radio):
        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'VOLUME_UNMUTE'))
        assert known_radio.readings.get('volume') == 16

    def test_volume_set_ack_notifies(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'VOLUME_SET:20'))
        assert changes == [{ 'volume': 20, 'mute': 'off' }]

    def test_radio_on_off_acks(self, known_radio, changes):
        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'RADIO_OFF'))
        assert known_radio.status == DeviceStatus.OFF
        assert changes == [{ 'state': 'off' }, { 'power': 'off' }]
        changes.clear()
        known_radio.process_datagram(RADIO_ADDR, reply('SET', 'RADIO_ON'))
        assert known_radio.status == DeviceStatus.ON
        assert changes == [{ 'state': 'on' }, { 'power': 'on' }]
