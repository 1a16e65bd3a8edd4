from __future__ import annotations

from functools import partial
from typing import List, Optional

import typer

from cli.config import load_config
from device.http_channel import HttpDeviceChannel
from logging_config import configure_logging
from models.records import Credentials
from services import console
from services.agent import run_agent
from services.sensor import SampleTemperatureSensor


app = typer.Typer(
    help="Sample sensor agent publishing temperature readings to a device-management service.",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


@app.command()
def main(
    args: Optional[List[str]] = typer.Argument(
        None,
        metavar="ENDPOINT_ID SECRET",
        help="Device endpoint identifier and its secret.",
        show_default=False,
    ),
    server_url: Optional[str] = typer.Option(
        None,
        "--server-url",
        "-s",
        help="Device-management base URL (defaults to IOT_SERVER_URL env or http://localhost:8000).",
    ),
    report_interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between published readings.",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between checks for a stop request while waiting.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level for diagnostics written to stderr.",
    ),
) -> None:
    """Activate the device, publish readings and stop when enter is pressed."""
    config = load_config(
        server_url=server_url,
        report_interval=report_interval,
        poll_interval=poll_interval,
        log_level=log_level,
    )
    configure_logging(config.log_level)

    if args is None or len(args) != 2:
        console.display("\nIncorrect number of arguments.\n")
        console.show_usage()
        raise typer.Exit(code=1)

    factory = partial(
        HttpDeviceChannel,
        base_url=config.server_url,
        timeout=config.request_timeout,
    )
    exit_code = run_agent(
        Credentials(endpoint_id=args[0], secret=args[1]),
        factory,
        sensor=SampleTemperatureSensor(),
        config=config.agent_config(),
    )
    if exit_code:
        raise typer.Exit(code=exit_code)
