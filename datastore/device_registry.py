from __future__ import annotations

import json
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from server.schemas import (
    AttributeDefinition,
    AttributeType,
    AttributeUpdate,
    AttributeValue,
    DeviceModel,
    DeviceRecord,
)
from settings import DEFAULT_MODEL_URN, get_settings


SAMPLE_SENSOR_MODEL = DeviceModel(
    urn=DEFAULT_MODEL_URN,
    name="Device1 sensor",
    description="Simple temperature sensor.",
    attributes=[
        AttributeDefinition(
            name="temperature",
            type=AttributeType.number,
            description="Current temperature in degrees Celsius.",
            range_low=-40.0,
            range_high=125.0,
        )
    ],
)


class DeviceAlreadyActivated(Exception):
    """Raised when activation is requested for an already active device."""


class DeviceRegistry:
    """Thread-safe store of device models and enrolled devices."""

    def __init__(
        self,
        models: Iterable[DeviceModel] = (SAMPLE_SENSOR_MODEL,),
        persistence_path: Optional[Path] = None,
    ) -> None:
        self._models: Dict[str, DeviceModel] = {model.urn: model for model in models}
        self._devices: Dict[str, DeviceRecord] = {}
        self._secrets: Dict[str, str] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def get_model(self, urn: str) -> Optional[DeviceModel]:
        with self._lock:
            model = self._models.get(urn)
            return model.model_copy(deep=True) if model is not None else None

    def get_device(self, endpoint_id: str) -> Optional[DeviceRecord]:
        with self._lock:
            record = self._devices.get(endpoint_id)
            return record.model_copy(deep=True) if record is not None else None

    def authenticate(self, endpoint_id: str, secret: Optional[str]) -> bool:
        """Return True when ``secret`` matches, or the endpoint is not enrolled yet."""
        with self._lock:
            expected = self._secrets.get(endpoint_id)
        return expected is None or expected == secret

    def activate(self, endpoint_id: str, secret: str, model_urns: Iterable[str]) -> DeviceRecord:
        urns = list(dict.fromkeys(model_urns))
        with self._lock:
            unknown = sorted(urn for urn in urns if urn not in self._models)
            if unknown:
                raise ValueError(f"Unknown device model(s): {', '.join(unknown)}")

            existing = self._devices.get(endpoint_id)
            if existing is not None and existing.activated:
                raise DeviceAlreadyActivated(f"Device {endpoint_id!r} is already activated.")

            record = DeviceRecord(
                endpoint_id=endpoint_id,
                activated=True,
                model_urns=urns,
                activated_at=datetime.now(timezone.utc),
            )
            self._devices[endpoint_id] = record
            self._secrets[endpoint_id] = secret
            self._persist()
            return record.model_copy(deep=True)

    def update_attributes(self, endpoint_id: str, update: AttributeUpdate) -> DeviceRecord:
        with self._lock:
            record = self._devices.get(endpoint_id)
            if record is None or not record.activated:
                raise KeyError(f"Device {endpoint_id!r} is not activated.")
            if update.model_urn not in record.model_urns:
                raise ValueError(
                    f"Device {endpoint_id!r} does not implement model {update.model_urn!r}."
                )

            model = self._models[update.model_urn]
            for name, value in update.values.items():
                definition = model.get_attribute(name)
                if definition is None:
                    raise ValueError(f"Attribute {name!r} is not defined by {model.urn!r}.")
                _validate_value(definition, value)

            record.attributes.update(update.values)
            record.updated_at = datetime.now(timezone.utc)
            self._persist()
            return record.model_copy(deep=True)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            endpoint_id: {
                "record": record.model_dump(mode="json"),
                "secret": self._secrets.get(endpoint_id),
            }
            for endpoint_id, record in self._devices.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        if not isinstance(data, dict):
            data = {}

        for endpoint_id, entry in data.items():
            if not isinstance(entry, dict) or "record" not in entry:
                continue
            try:
                record = DeviceRecord.model_validate(entry["record"])
            except ValidationError:
                continue
            self._devices[endpoint_id] = record
            if entry.get("secret") is not None:
                self._secrets[endpoint_id] = entry["secret"]


def _validate_value(definition: AttributeDefinition, value: AttributeValue) -> None:
    name = definition.name
    if definition.type in (AttributeType.number, AttributeType.integer):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Attribute {name!r} expects a {definition.type.value}.")
        if definition.type is AttributeType.integer and not isinstance(value, int):
            raise ValueError(f"Attribute {name!r} expects an integer.")
        if definition.range_low is not None and value < definition.range_low:
            raise ValueError(
                f"Value {value} for {name!r} is below the minimum of {definition.range_low}."
            )
        if definition.range_high is not None and value > definition.range_high:
            raise ValueError(
                f"Value {value} for {name!r} is above the maximum of {definition.range_high}."
            )
    elif definition.type is AttributeType.boolean:
        if not isinstance(value, bool):
            raise ValueError(f"Attribute {name!r} expects a boolean.")
    elif not isinstance(value, str):
        raise ValueError(f"Attribute {name!r} expects a string.")


@lru_cache
def build_default_registry(path: Optional[str] = None) -> DeviceRegistry:
    settings = get_settings()
    registry_path = settings.registry_path if path is None else path
    persistence = Path(registry_path) if registry_path else None
    return DeviceRegistry(persistence_path=persistence)
