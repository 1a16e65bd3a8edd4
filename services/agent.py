"""Sensor agent: activate a device, publish readings until told to stop."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional, TextIO

from device.channel import ChannelFactory, DeviceChannel, ErrorEvent, VirtualDevice
from models.records import Credentials, SensorReading
from services import console
from services.cancellation import KeypressListener, wait_for_stop
from services.sensor import SampleTemperatureSensor, Sensor
from settings import DEFAULT_MODEL_URN

logger = logging.getLogger(__name__)

TEMPERATURE_ATTRIBUTE = "temperature"


@dataclass(frozen=True)
class AgentConfig:
    model_urn: str = DEFAULT_MODEL_URN
    attribute: str = TEMPERATURE_ATTRIBUTE
    report_interval: float = 5.0
    poll_interval: float = 0.1
    under_framework: bool = False


class SensorAgent:
    """Publishes sensor readings through an activated device channel."""

    def __init__(
        self,
        channel: DeviceChannel,
        sensor: Sensor,
        config: AgentConfig,
        exiting: Optional[threading.Event] = None,
        keypress: Optional[KeypressListener] = None,
    ) -> None:
        self.channel = channel
        self.sensor = sensor
        self.config = config
        self.exiting = exiting or threading.Event()
        self.keypress = keypress
        self.last_reading: Optional[SensorReading] = None

    def run(self) -> None:
        device = self.connect()
        self.publish_initial(device)
        device.set_on_error(self.on_error)

        stop = threading.Event()
        if not self.config.under_framework:
            listener = self.keypress or KeypressListener()
            listener.start()
            stop = listener.pressed

        console.display("\n\tPress enter to exit.\n")
        while not wait_for_stop(
            stop, self.exiting, self.config.report_interval, self.config.poll_interval
        ):
            self.publish(device)
        logger.info("Stop requested", extra={"endpoint_id": device.endpoint_id})

    def connect(self) -> VirtualDevice:
        channel = self.channel
        if not channel.is_activated():
            logger.info(
                "Activating device",
                extra={"endpoint_id": channel.endpoint_id, "model_urn": self.config.model_urn},
            )
            channel.activate(self.config.model_urn)

        model = channel.get_device_model(self.config.model_urn)
        device = channel.create_virtual_device(channel.endpoint_id, model)
        console.display(f"\nCreated virtual sensor {channel.endpoint_id}\n")
        return device

    def publish_initial(self, device: VirtualDevice) -> None:
        reading = SensorReading(attribute=self.config.attribute, value=self.sensor.read())
        device.update().set(reading.attribute, reading.value).finish()
        self.last_reading = reading
        console.display_reading(device.endpoint_id, reading)

    def publish(self, device: VirtualDevice) -> None:
        reading = SensorReading(attribute=self.config.attribute, value=self.sensor.read())
        console.display_reading(device.endpoint_id, reading)
        device.set(reading.attribute, reading.value)
        self.last_reading = reading
        logger.debug(
            "Reading published",
            extra={
                "endpoint_id": device.endpoint_id,
                "attribute": reading.attribute,
                "value": reading.value,
            },
        )

    @staticmethod
    def on_error(event: ErrorEvent) -> None:
        console.display_error_event(event.device.endpoint_id, event.message)


def run_agent(
    credentials: Credentials,
    channel_factory: ChannelFactory,
    sensor: Optional[Sensor] = None,
    config: Optional[AgentConfig] = None,
    exiting: Optional[threading.Event] = None,
    stdin: Optional[TextIO] = None,
) -> int:
    """Run the agent to completion and return a process exit code.

    Failures are reported once here. When ``config.under_framework`` is set the
    failure is re-raised after reporting so the embedding framework sees it.
    """
    config = config or AgentConfig()
    channel: Optional[DeviceChannel] = None
    try:
        channel = channel_factory(credentials.endpoint_id, credentials.secret)
        agent = SensorAgent(
            channel,
            sensor or SampleTemperatureSensor(),
            config,
            exiting=exiting,
            keypress=KeypressListener(stdin),
        )
        agent.run()
    except Exception as exc:
        logger.error(
            "Sensor agent failed",
            extra={"endpoint_id": credentials.endpoint_id, "reason": str(exc)},
        )
        console.display_exception(exc)
        if config.under_framework:
            raise
        return 1
    finally:
        if channel is not None:
            _close_quietly(channel)
    return 0


def _close_quietly(channel: DeviceChannel) -> None:
    try:
        channel.close()
    except Exception:  # noqa: BLE001 - release failures are not reported
        logger.debug("Ignoring error while closing device channel", exc_info=True)
