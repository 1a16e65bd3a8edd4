from __future__ import annotations

import io
import threading

import pytest

from models.records import Credentials
from services.agent import AgentConfig, SensorAgent, run_agent
from services.cancellation import KeypressListener
from services.sensor import SampleTemperatureSensor
from settings import DEFAULT_MODEL_URN
from stubs import StubChannel

FAST = AgentConfig(report_interval=0.01, poll_interval=0.005)
CREDENTIALS = Credentials(endpoint_id="id1", secret="secret1")


def _run(channel: StubChannel, config: AgentConfig = FAST, stdin: io.StringIO | None = None) -> int:
    return run_agent(
        CREDENTIALS,
        lambda endpoint_id, secret: channel,
        sensor=SampleTemperatureSensor(),
        config=config,
        exiting=channel.exiting,
        stdin=stdin if stdin is not None else io.StringIO(""),
    )


def test_activation_precedes_virtual_device_creation() -> None:
    channel = StubChannel(activated=False, stop_after=1)

    assert _run(channel) == 0

    names = channel.call_names()
    assert names[:4] == ["is_activated", "activate", "get_device_model", "create_virtual_device"]
    assert channel.calls[1] == ("activate", (DEFAULT_MODEL_URN,))


def test_activation_skipped_when_already_active() -> None:
    channel = StubChannel(activated=True, stop_after=1)

    assert _run(channel) == 0

    names = channel.call_names()
    assert "activate" not in names
    assert names[:3] == ["is_activated", "get_device_model", "create_virtual_device"]


def test_initial_publish_is_25_then_each_interval_publishes_26(capsys) -> None:
    channel = StubChannel(activated=True, stop_after=3)

    assert _run(channel) == 0

    publishes = [entry for entry in channel.calls if entry[0] in {"finish", "set"}]
    assert publishes[0] == ("finish", {"temperature": 25})
    assert publishes[1:] == [("set", {"temperature": 26})] * 3
    out = capsys.readouterr().out
    assert 'id1 : Set : "temperature"=25' in out
    assert out.count('id1 : Set : "temperature"=26') == 3
    assert "Created virtual sensor id1" in out


def test_cancellation_stops_publishing_and_closes_once() -> None:
    exiting = threading.Event()
    exiting.set()
    channel = StubChannel(activated=True, exiting=exiting)

    assert _run(channel) == 0

    assert [name for name in channel.call_names() if name == "set"] == []
    assert channel.close_count == 1


def test_keypress_stops_the_loop() -> None:
    channel = StubChannel(activated=True)
    config = AgentConfig(report_interval=0.05, poll_interval=0.005)

    assert _run(channel, config=config, stdin=io.StringIO("\n")) == 0

    assert channel.close_count == 1
    assert channel.calls[-1][0] in {"finish", "set"}


def test_keypress_ignored_under_framework() -> None:
    channel = StubChannel(activated=True, stop_after=2)
    config = AgentConfig(report_interval=0.01, poll_interval=0.005, under_framework=True)

    assert _run(channel, config=config, stdin=io.StringIO("\n")) == 0

    assert [name for name in channel.call_names() if name == "set"] == ["set", "set"]


def test_activation_failure_reports_cause_and_usage(capsys) -> None:
    channel = StubChannel(activated=False, fail_on="activate")

    assert _run(channel) == 1

    out = capsys.readouterr().out
    assert "activation failed.\n\tCaused by: ConnectionError('network unreachable')" in out
    assert "Usage:" in out
    assert "create_virtual_device" not in channel.call_names()
    assert channel.close_count == 1


def test_publish_failure_is_fatal() -> None:
    channel = StubChannel(activated=True, fail_on="set")

    assert _run(channel) == 1
    assert channel.call_names().count("set") == 1
    assert channel.close_count == 1


def test_failure_reraised_under_framework(capsys) -> None:
    channel = StubChannel(activated=True, fail_on="finish")
    config = AgentConfig(report_interval=0.01, poll_interval=0.005, under_framework=True)

    with pytest.raises(RuntimeError, match="update rejected"):
        _run(channel, config=config)

    assert "update rejected" in capsys.readouterr().out
    assert channel.close_count == 1


def test_close_failure_is_swallowed() -> None:
    channel = StubChannel(activated=True, stop_after=1, close_error=OSError("socket gone"))

    assert _run(channel) == 0
    assert channel.close_count == 1


def test_channel_factory_failure_skips_close(capsys) -> None:
    def factory(endpoint_id: str, secret: str) -> StubChannel:
        raise ValueError("bad trusted assets")

    assert run_agent(CREDENTIALS, factory, config=FAST, stdin=io.StringIO("")) == 1
    assert "bad trusted assets" in capsys.readouterr().out


def test_error_callback_only_logs(capsys) -> None:
    channel = StubChannel(activated=True)
    channel.exiting.set()
    agent = SensorAgent(
        channel,
        SampleTemperatureSensor(),
        FAST,
        exiting=channel.exiting,
        keypress=KeypressListener(io.StringIO("")),
    )

    agent.run()
    assert channel.device is not None
    channel.device.fire_error("value out of range")

    out = capsys.readouterr().out
    assert ': onError : id1 : "value out of range"' in out
    assert agent.last_reading is not None
    assert agent.last_reading.value == 25
