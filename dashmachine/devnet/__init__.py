"""
Entry point for the devnet gateway.
"""

from __future__ import annotations

import uvicorn

from dashmachine.common.config import Config

from .core import DevnetServer


def start_server(config: Config | None = None, propagation_delay: float | None = None) -> None:
    """Start the devnet gateway and block until it exits."""
    if config is None:
        config = Config()
    server = DevnetServer(config=config, propagation_delay=propagation_delay)
    uvicorn.run(server.app, host=server.server_host, port=server.server_port)


__all__ = ["DevnetServer", "start_server"]
