"""Command-line entry point; the Typer application is ``cli.app.app``."""
