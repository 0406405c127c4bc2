"""Helper for running the Larder ASGI application."""

from __future__ import annotations

import os

import uvicorn


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid LARDER_SERVER_PORT '{value}': {exc}") from exc
    if not 0 < port < 65536:
        raise SystemExit("LARDER_SERVER_PORT must be between 1 and 65535.")
    return port


def main() -> None:
    """Serve the API with uvicorn, configured from ``LARDER_SERVER_*`` variables."""

    host = os.environ.get("LARDER_SERVER_HOST", "127.0.0.1")
    port = _parse_port(os.environ.get("LARDER_SERVER_PORT", "8000"))
    reload_enabled = os.environ.get("RELOAD") == "1"

    uvicorn.run(
        "larder.server.app:app",
        host=host,
        port=port,
        reload=reload_enabled,
    )


if __name__ == "__main__":
    main()
