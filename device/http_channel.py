"""Device channel speaking to the device-management REST API over httpx."""

from __future__ import annotations

import logging
from typing import Dict, NoReturn, Optional, Type

import httpx

from device.channel import (
    ActivationError,
    AttributeUpdateError,
    AuthenticationError,
    DeviceError,
    DeviceModelError,
    ErrorCallback,
    ErrorEvent,
)
from server.schemas import (
    ActivationRequest,
    AttributeUpdate,
    AttributeValue,
    DeviceModel,
    DeviceRecord,
)

logger = logging.getLogger(__name__)

SECRET_HEADER = "X-Device-Secret"


class HttpDeviceChannel:
    """Authenticated handle for one endpoint of the device-management service."""

    def __init__(
        self,
        endpoint_id: str,
        secret: str,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._endpoint_id = endpoint_id
        self._secret = secret
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._closed = False

    @property
    def endpoint_id(self) -> str:
        return self._endpoint_id

    def is_activated(self) -> bool:
        response = self._request("GET", f"/devices/{self._endpoint_id}")
        if response.status_code == httpx.codes.NOT_FOUND:
            return False
        self._raise_for_status(response, DeviceError)
        return DeviceRecord.model_validate(response.json()).activated

    def activate(self, *model_urns: str) -> None:
        if not model_urns:
            raise ActivationError("At least one device model URN is required for activation.")
        payload = ActivationRequest(model_urns=list(model_urns))
        response = self._request(
            "POST",
            f"/devices/{self._endpoint_id}/activation",
            json=payload.model_dump(mode="json"),
        )
        self._raise_for_status(response, ActivationError)
        logger.info(
            "Device activated",
            extra={"endpoint_id": self._endpoint_id, "model_urn": ",".join(model_urns)},
        )

    def get_device_model(self, urn: str) -> DeviceModel:
        response = self._request("GET", f"/models/{urn}")
        self._raise_for_status(response, DeviceModelError)
        return DeviceModel.model_validate(response.json())

    def create_virtual_device(self, endpoint_id: str, model: DeviceModel) -> HttpVirtualDevice:
        return HttpVirtualDevice(self, endpoint_id, model)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.close()

    def send_attributes(
        self, endpoint_id: str, model_urn: str, values: Dict[str, AttributeValue]
    ) -> DeviceRecord:
        """Submit attribute values and block until the service confirms them."""
        if self._closed:
            raise DeviceError(f"Channel for {self._endpoint_id!r} is closed.")
        payload = AttributeUpdate(model_urn=model_urn, values=values)
        response = self._request(
            "PUT",
            f"/devices/{endpoint_id}/attributes",
            json=payload.model_dump(mode="json"),
        )
        self._raise_for_status(response, AttributeUpdateError)
        return DeviceRecord.model_validate(response.json())

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(
                method, url, headers={SECRET_HEADER: self._secret}, **kwargs
            )
        except httpx.RequestError as exc:
            raise DeviceError(
                f"Unable to reach the device-management service for {self._endpoint_id!r}"
            ) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, error_cls: Type[DeviceError]) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            HttpDeviceChannel._handle_http_error(exc, error_cls)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError, error_cls: Type[DeviceError]) -> NoReturn:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail") if isinstance(data, dict) else None
        except ValueError:
            detail = exc.response.text.strip()
        if not isinstance(detail, str):
            detail = None
        status_code = exc.response.status_code
        message = f"Request failed with status {status_code}: {detail or 'no detail provided.'}"
        logger.debug(message, extra={"status_code": status_code})
        if status_code == httpx.codes.UNAUTHORIZED:
            raise AuthenticationError(message, status_code=status_code) from exc
        raise error_cls(message, status_code=status_code) from exc


class HttpAttributeBatch:
    """Collects attribute values and sends them in a single confirmed request."""

    def __init__(self, device: HttpVirtualDevice) -> None:
        self._device = device
        self._values: Dict[str, AttributeValue] = {}

    def set(self, name: str, value: AttributeValue) -> HttpAttributeBatch:
        self._device.check_attribute(name)
        self._values[name] = value
        return self

    def finish(self) -> None:
        if not self._values:
            return
        self._device.apply(self._values)
        self._values = {}


class HttpVirtualDevice:
    """Local view of the remote attributes of one device model."""

    def __init__(self, channel: HttpDeviceChannel, endpoint_id: str, model: DeviceModel) -> None:
        self._channel = channel
        self._endpoint_id = endpoint_id
        self._model = model
        self._values: Dict[str, AttributeValue] = {}
        self._on_error: Optional[ErrorCallback] = None

    @property
    def endpoint_id(self) -> str:
        return self._endpoint_id

    @property
    def model(self) -> DeviceModel:
        return self._model

    def get(self, name: str) -> Optional[AttributeValue]:
        self.check_attribute(name)
        return self._values.get(name)

    def update(self) -> HttpAttributeBatch:
        return HttpAttributeBatch(self)

    def set(self, name: str, value: AttributeValue) -> None:
        """Send ``value`` and wait for the service to confirm it.

        A rejection by the service is handed to the callback registered with
        :meth:`set_on_error`; transport and authentication failures raise.
        """
        self.check_attribute(name)
        try:
            self.apply({name: value})
        except AttributeUpdateError as exc:
            if not is_rejection(exc):
                raise
            self.report_error(str(exc), {name: value})

    def set_on_error(self, callback: Optional[ErrorCallback]) -> None:
        self._on_error = callback

    def check_attribute(self, name: str) -> None:
        if self._model.get_attribute(name) is None:
            raise DeviceModelError(f"Attribute {name!r} is not defined by {self._model.urn!r}.")

    def apply(self, values: Dict[str, AttributeValue]) -> None:
        self._channel.send_attributes(self._endpoint_id, self._model.urn, values)
        self._values.update(values)

    def report_error(self, message: str, values: Dict[str, AttributeValue]) -> None:
        callback = self._on_error
        if callback is None:
            logger.warning(
                "Attribute update rejected",
                extra={"endpoint_id": self._endpoint_id, "reason": message},
            )
            return
        try:
            callback(ErrorEvent(device=self, message=message, attributes=dict(values)))
        except Exception:  # noqa: BLE001 - callback failures are only logged
            logger.exception(
                "Error callback raised", extra={"endpoint_id": self._endpoint_id}
            )


def is_rejection(exc: DeviceError) -> bool:
    """True when the service answered and refused the request (4xx)."""
    status_code = exc.status_code
    return status_code is not None and 400 <= status_code < 500
