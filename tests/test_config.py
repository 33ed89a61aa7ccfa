#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import json

import pytest

from busch_radio import AttributeStore, ConfigContext, ConfigError

class TestAttributeStore:
    def test_defaults(self):
        attrs = AttributeStore()
        assert attrs.get('host') is None
        assert attrs.get_str('host') == ''
        assert attrs.get_int('UDPPort') == 4244
        assert attrs.get_int('UDPListenPort') == 4242
        assert attrs.get_int('timer') == 60
        assert attrs.get_int('fullUpdateInterval') == 86400
        assert attrs.get_str('broadcastAddress') == '255.255.255.255'

    def test_numeric_strings_accepted(self):
        attrs = AttributeStore({ 'timer': ' 30 ' })
        assert attrs.get_int('timer') == 30

    def test_bad_int_raises(self):
        attrs = AttributeStore({ 'timer': 'soon' })
        with pytest.raises(ConfigError):
            attrs.get_int('timer')

    def test_unknown_attribute(self):
        with pytest.raises(ConfigError) as exc_info:
            AttributeStore().set('volume', 3)
        assert 'fullUpdateInterval' in str(exc_info.value)

    def test_hook_can_reject(self):
        attrs = AttributeStore({ 'timer': 10 })
        seen = []
        def hook(name, value):
            seen.append((name, value))
            if value == 99:
                raise ConfigError("no")
        attrs.set_hook('timer', hook)
        attrs.set('timer', 20)
        with pytest.raises(ConfigError):
            attrs.set('timer', 99)
        assert attrs.get('timer') == 20
        attrs.delete('timer')
        assert attrs.get('timer') == 60
        assert seen == [('timer', 20), ('timer', 99), ('timer', None)]

    def test_set_silently_skips_hook(self):
        attrs = AttributeStore()
        attrs.set_hook('broadcastAddress', lambda name, value: pytest.fail("hook called"))
        attrs.set_silently('broadcastAddress', '10.0.0.255')
        assert attrs.as_dict() == { 'broadcastAddress': '10.0.0.255' }

class TestConfigContext:
    def test_load_with_env_substitution(self):
        ctx = ConfigContext(os_environ={ 'RADIO_HOST': '10.0.0.5' })
        cfg = ctx.loads(json.dumps({
            'version': '1.0.0',
            'name': 'Radio1',
            'host': '${env:RADIO_HOST}',
            'attributes': { 'timer': 30, 'broadcastAddress': '10.0.0.255' },
          }))
        assert cfg.name == 'Radio1'
        assert cfg.host == '10.0.0.5'
        assert cfg.attributes == { 'timer': 30, 'broadcastAddress': '10.0.0.255' }

    def test_missing_env_var(self):
        ctx = ConfigContext(os_environ={})
        with pytest.raises(ConfigError):
            ctx.loads('{"name": "${env:NOPE}"}')

    def test_newer_version_rejected(self):
        with pytest.raises(ConfigError):
            ConfigContext(os_environ={}).loads('{"version": "99.0.0", "name": "x"}')

    def test_unknown_attribute_rejected(self):
        with pytest.raises(ConfigError):
            ConfigContext(os_environ={}).loads('{"name": "x", "attributes": {"volume": 3}}')

    def test_invalid_json(self):
        with pytest.raises(ConfigError):
            ConfigContext(os_environ={}).loads('{name')

    def test_load_file(self, tmp_path):
        config_file = tmp_path / 'radio.json'
        config_file.write_text('{"name": "Kitchen", "host": "", "attributes": {"UDPListenPort": "4343"}}')
        cfg = ConfigContext(os_environ={}).load_file(str(config_file))
        assert cfg.name == 'Kitchen'
        assert cfg.host is None
        assert cfg.attributes == { 'UDPListenPort': '4343' }
        assert cfg.config_file == str(config_file)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            ConfigContext(os_environ={}).load_file(str(tmp_path / 'missing.json'))
