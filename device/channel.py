"""Interfaces the sensor agent expects from a device-management client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Protocol

from server.schemas import AttributeValue, DeviceModel


class DeviceError(Exception):
    """Base class for failures reported by a device channel."""

    def __init__(self, message: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(DeviceError):
    """The endpoint rejected the device credentials."""


class ActivationError(DeviceError):
    """Activating the device with the requested model failed."""


class DeviceModelError(DeviceError):
    """A device model could not be retrieved or does not fit the request."""


class AttributeUpdateError(DeviceError):
    """An attribute update was rejected."""


@dataclass(frozen=True)
class ErrorEvent:
    """An attribute update the service rejected."""

    device: "VirtualDevice"
    message: str
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)


ErrorCallback = Callable[[ErrorEvent], None]


class AttributeBatch(Protocol):
    def set(self, name: str, value: AttributeValue) -> "AttributeBatch": ...

    def finish(self) -> None: ...


class VirtualDevice(Protocol):
    @property
    def endpoint_id(self) -> str: ...

    @property
    def model(self) -> DeviceModel: ...

    def update(self) -> AttributeBatch: ...

    def set(self, name: str, value: AttributeValue) -> None: ...

    def set_on_error(self, callback: Optional[ErrorCallback]) -> None: ...


class DeviceChannel(Protocol):
    @property
    def endpoint_id(self) -> str: ...

    def is_activated(self) -> bool: ...

    def activate(self, *model_urns: str) -> None: ...

    def get_device_model(self, urn: str) -> DeviceModel: ...

    def create_virtual_device(self, endpoint_id: str, model: DeviceModel) -> VirtualDevice: ...

    def close(self) -> None: ...


ChannelFactory = Callable[[str, str], DeviceChannel]
