"""Main CLI application using Cyclopts."""

import os
import sys
from pathlib import Path

import cyclopts
from pydantic import ValidationError

from fedbroker.cli.console import get_console
from fedbroker.config import CONFIG_FILE_ENV, Config

app = cyclopts.App(
    name="fedbroker",
    help="Identity-federation broker for OAuth2 providers",
)


def _use_config_file(config: Path | None) -> None:
    """Point settings loading at `config`, exiting if it does not exist."""
    if config is None:
        return
    if not config.exists():
        get_console().error(f"Config file not found: {config}")
        sys.exit(1)
    os.environ[CONFIG_FILE_ENV] = str(config.resolve())


def _load_config() -> Config:
    try:
        return Config()  # type: ignore[call-arg]
    except ValidationError as e:
        get_console().error("Invalid configuration", hint=str(e))
        sys.exit(1)


@app.command
def serve(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: Path | None = None,
) -> None:
    """Run the broker HTTP server in the foreground.

    Args:
        host: Host to bind to.
        port: Port to listen on.
        config: Path to a YAML config file.
    """
    import uvicorn

    _use_config_file(config)
    # Exit on invalid configuration before uvicorn starts
    _load_config()

    uvicorn.run(
        "fedbroker.application.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,  # configure_logging owns the handlers
    )


@app.command
def providers(config: Path | None = None) -> None:
    """List the configured identity providers.

    Args:
        config: Path to a YAML config file.
    """
    console = get_console()
    _use_config_file(config)
    settings = _load_config()

    if not settings.providers:
        console.warning("No providers configured")
        return

    rows = [
        {
            "id": provider.id,
            "kind": provider.kind.value,
            "pkce": "yes" if provider.requires_pkce else "no",
            "token_auth": provider.token_auth.value,
            "redirect_uri": provider.redirect_uri or "-",
            "client_id": "set" if provider.client_id else "missing",
        }
        for provider in settings.providers.values()
    ]
    console.table(
        rows,
        [
            ("id", "Provider"),
            ("kind", "Kind"),
            ("pkce", "PKCE"),
            ("token_auth", "Token auth"),
            ("redirect_uri", "Redirect URI"),
            ("client_id", "Client ID"),
        ],
        title="Identity providers",
    )


def main() -> None:
    app()
