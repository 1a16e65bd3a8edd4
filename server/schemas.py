"""Pydantic schemas shared by the device-management API and its HTTP client."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

AttributeValue = Union[bool, int, float, str]


class AttributeType(str, Enum):
    """Value types a device model attribute may declare."""

    number = "number"
    integer = "integer"
    string = "string"
    boolean = "boolean"


class AttributeDefinition(BaseModel):
    """A single attribute declared by a device model."""

    name: str
    type: AttributeType = AttributeType.number
    description: str = ""
    range_low: Optional[float] = None
    range_high: Optional[float] = None
    writable: bool = False


class DeviceModel(BaseModel):
    """Named set of attributes a virtual device implements."""

    urn: str
    name: str
    description: str = ""
    attributes: List[AttributeDefinition] = Field(default_factory=list)

    def get_attribute(self, name: str) -> Optional[AttributeDefinition]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None


class DeviceRecord(BaseModel):
    """Server-side view of an enrolled device."""

    endpoint_id: str
    activated: bool = False
    model_urns: List[str] = Field(default_factory=list)
    activated_at: Optional[datetime] = None
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class ActivationRequest(BaseModel):
    """Payload sent when a device registers the models it implements."""

    model_urns: List[str] = Field(..., min_length=1)


class AttributeUpdate(BaseModel):
    """One or more attribute values submitted for a virtual device."""

    model_urn: str
    values: Dict[str, AttributeValue] = Field(..., min_length=1)
