#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

from typing import Dict, List, Optional, Union

import pytest

from busch_radio import RadioAgent

from helpers import FakeLoop, FakeTransport

_hosts: Dict[str, str] = {
    '10.0.0.5': '10.0.0.5',
    '192.168.1.20': '192.168.1.20',
    'radio.local': '192.168.1.20',
}

@pytest.fixture(autouse=True)
def fake_resolver(monkeypatch):
    """Resolves a fixed set of names without touching DNS."""
    def resolve_host(host: str) -> Optional[str]:
        return _hosts.get(host)
    monkeypatch.setattr('busch_radio.resolver.resolve_host', resolve_host)

@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()

@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()

@pytest.fixture
def agent(loop, transport) -> RadioAgent:
    """A started agent without a configured host."""
    a = RadioAgent('Radio1', loop=loop, transport=transport)  # type: ignore[arg-type]
    a.start()
    return a

@pytest.fixture
def changes(agent) -> List[Dict[str, Optional[Union[str, int]]]]:
    """Collects every readings notification of the agent."""
    result: List[Dict[str, Optional[Union[str, int]]]] = []
    agent.readings.add_listener(result.append)
    return result
