#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import pytest

from busch_radio import RadioDatagram, Verb, NotificationEvent, SetAction, parse_fields, build_command
from busch_radio.radio_datagram import VERB_LINE_KEY

def test_build_command_framing():
    assert build_command('GET', ['VOLUME'], 'Radio1') == b'COMMAND:GET\r\nVOLUME\r\nID:Radio1\r\n\r\n'

def test_build_discover_has_empty_parameter_line():
    assert build_command('DISCOVER', [''], 'Radio1') == b'COMMAND:DISCOVER\r\n\r\nID:Radio1\r\n\r\n'

def test_build_command_without_parameters():
    assert build_command('SET', [], 'x') == b'COMMAND:SET\r\nID:x\r\n\r\n'

def test_parse_duplicate_keys_are_suffixed_in_order():
    fields = parse_fields(b'COMMAND:GET\r\nALL_STATION_INFO\r\nNAME:a\r\nNAME:b\r\nNAME:c\r\n')
    assert list(fields.keys()) == ['COMMAND', VERB_LINE_KEY, 'NAME', 'NAME_1', 'NAME_2']
    assert (fields['NAME'], fields['NAME_1'], fields['NAME_2']) == ('a', 'b', 'c')

def test_parse_suffix_skips_taken_names():
    fields = parse_fields(b'ID_1:x\nID:a\nID:b\n')
    assert fields['ID_1'] == 'x'
    assert fields['ID'] == 'a'
    assert fields['ID_2'] == 'b'

def test_parse_line_without_colon_goes_to_verb_key():
    fields = parse_fields(b'COMMAND:SET\r\nRADIO_ON\r\n')
    assert fields[VERB_LINE_KEY] == 'RADIO_ON'

def test_parse_value_keeps_colons_after_first():
    fields = parse_fields(b'URL:http://radio.example:8000/live\r\n')
    assert fields['URL'] == 'http://radio.example:8000/live'

def test_parse_accepts_lf_only_and_skips_empty_lines():
    fields = parse_fields(b'COMMAND:GET\n\n\nVOLUME\nVOLUME_SET:7\n')
    assert dict(fields) == { 'COMMAND': 'GET', VERB_LINE_KEY: 'VOLUME', 'VOLUME_SET': '7' }

def test_parse_garbage_never_raises():
    fields = parse_fields(b'\xff\xfe:\x00\r\n:\r\n\r\r\n')
    assert isinstance(dict(fields), dict)

def test_parse_is_case_insensitive():
    fields = parse_fields(b'Response:ACK\r\n')
    assert fields['RESPONSE'] == 'ACK'
    assert list(fields.keys()) == ['Response']

def test_parse_duplicates_differing_in_case_are_suffixed():
    fields = parse_fields(b'NAME:a\r\nname:b\r\n')
    assert list(fields.keys()) == ['NAME', 'name_1']
    assert fields['NAME_1'] == 'b'

def test_datagram_properties():
    dg = RadioDatagram(raw_data=b'COMMAND:NOTIFICATION\r\nIP:10.0.0.5\r\nEVENT:VOLUME_CHANGED\r\nRESPONSE:ACK\r\n\r\n')
    assert dg.verb == Verb.NOTIFICATION
    assert dg.is_ack
    assert dg.ip == '10.0.0.5'
    assert dg.notification_event == NotificationEvent.VOLUME_CHANGED
    assert dg.identity is None

def test_datagram_from_command_round_trips():
    dg = RadioDatagram('SET', ['VOLUME_MUTE'], 'Radio1')
    assert dg.raw_data == b'COMMAND:SET\r\nVOLUME_MUTE\r\nID:Radio1\r\n\r\n'
    assert dg.command == 'SET'
    assert dg.set_action == SetAction.VOLUME_MUTE
    assert dg.identity == 'Radio1'
    assert not dg.is_ack
    assert dg == RadioDatagram(raw_data=dg.raw_data)

def test_unknown_vocabulary_maps_to_unknown():
    dg = RadioDatagram(raw_data=b'COMMAND:REBOOT\r\nEVENT:SOMETHING\r\nRESPONSE:NAK\r\n')
    assert dg.verb == Verb.UNKNOWN
    assert dg.notification_event == NotificationEvent.UNKNOWN
    assert dg.set_action == SetAction.UNKNOWN
    assert not dg.is_ack

def test_datagram_requires_command_or_raw_data():
    with pytest.raises(ValueError):
        RadioDatagram(command='GET')
    with pytest.raises(ValueError):
        RadioDatagram(command='GET', identity='x', raw_data=b'')
