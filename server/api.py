"""HTTP route definitions for the mock device-management service."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from datastore.device_registry import DeviceAlreadyActivated, DeviceRegistry, build_default_registry
from server.schemas import ActivationRequest, AttributeUpdate, DeviceModel, DeviceRecord

router = APIRouter()

SECRET_HEADER = "X-Device-Secret"


def get_registry() -> DeviceRegistry:
    return build_default_registry()


def _require_secret(registry: DeviceRegistry, endpoint_id: str, secret: Optional[str]) -> str:
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {SECRET_HEADER} header.",
        )
    if not registry.authenticate(endpoint_id, secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid credentials for device {endpoint_id!r}.",
        )
    return secret


@router.get(
    "/models/{urn}",
    response_model=DeviceModel,
    summary="Fetch a device model definition.",
)
async def get_model(
    urn: str,
    registry: DeviceRegistry = Depends(get_registry),
) -> DeviceModel:
    model = registry.get_model(urn)
    if model is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Device model {urn!r} not found.",
        )
    return model


@router.get(
    "/devices/{endpoint_id}",
    response_model=DeviceRecord,
    summary="Fetch the enrollment and activation state of a device.",
)
async def get_device(
    endpoint_id: str,
    secret: Optional[str] = Header(None, alias=SECRET_HEADER),
    registry: DeviceRegistry = Depends(get_registry),
) -> DeviceRecord:
    _require_secret(registry, endpoint_id, secret)
    record = registry.get_device(endpoint_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Device {endpoint_id!r} is not enrolled.",
        )
    return record


@router.post(
    "/devices/{endpoint_id}/activation",
    response_model=DeviceRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Activate a device for one or more device models.",
)
async def activate_device(
    endpoint_id: str,
    request: ActivationRequest,
    secret: Optional[str] = Header(None, alias=SECRET_HEADER),
    registry: DeviceRegistry = Depends(get_registry),
) -> DeviceRecord:
    checked_secret = _require_secret(registry, endpoint_id, secret)
    try:
        return registry.activate(endpoint_id, checked_secret, request.model_urns)
    except DeviceAlreadyActivated as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.put(
    "/devices/{endpoint_id}/attributes",
    response_model=DeviceRecord,
    summary="Set attribute values on a virtual device.",
)
async def update_attributes(
    endpoint_id: str,
    update: AttributeUpdate,
    secret: Optional[str] = Header(None, alias=SECRET_HEADER),
    registry: DeviceRegistry = Depends(get_registry),
) -> DeviceRecord:
    _require_secret(registry, endpoint_id, secret)
    try:
        return registry.update_attributes(endpoint_id, update)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=exc.args[0],
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
