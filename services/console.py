"""Lines the sensor agent prints to stdout."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import typer

from models.records import SensorReading

USAGE = (
    "Usage: \n"
    "sensor-agent <endpoint id> <secret>\n"
)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    local = (moment or datetime.now()).astimezone()
    return local.strftime("%a %b %d %H:%M:%S %Z %Y")


def display(text: str = "") -> None:
    typer.echo(text)


def display_reading(endpoint_id: str, reading: SensorReading) -> None:
    display(
        f"{format_timestamp(reading.recorded_at)} : {endpoint_id} : "
        f'Set : "{reading.attribute}"={reading.value:g}'
    )


def display_error_event(endpoint_id: str, message: str) -> None:
    display(f'{format_timestamp()} : onError : {endpoint_id} : "{message}"')


def show_usage() -> None:
    display(USAGE)


def describe_exception(exc: BaseException) -> str:
    text = str(exc) or type(exc).__name__
    if exc.__cause__ is not None:
        text += f".\n\tCaused by: {exc.__cause__!r}"
    return text


def display_exception(exc: BaseException) -> None:
    display(f"\n{describe_exception(exc)}\n")
    show_usage()
