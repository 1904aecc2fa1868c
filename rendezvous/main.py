"""
Relay process entrypoint.

Resolves configuration, initialises logging and serves the FastAPI app with
uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .api.server import create_app
from .config import ConfigError, RelayConfig, load_config
from .utils.logging import configure_logging, resolve_level

LOG = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(config: RelayConfig) -> AsyncIterator[None]:
    LOG.info("Relay starting mode=%s profile=%s", config.mode, config.profile)
    try:
        yield
    finally:
        LOG.info("Relay shutting down")


async def serve(config: RelayConfig) -> None:
    """
    Run the relay inside an asyncio loop.

    Parameters
    ----------
    config:
        Effective relay configuration; ``host``/``port`` give the bind address.
    """

    import uvicorn

    @asynccontextmanager
    async def app_lifespan(_app) -> AsyncIterator[None]:
        async with lifespan(config):
            yield

    app = create_app(config=config, lifespan=app_lifespan)
    server_config = uvicorn.Config(
        app=app,
        host=config.host,
        port=config.port,
        log_config=None,
        log_level=config.log_level.lower(),
        reload=False,
    )
    server = uvicorn.Server(config=server_config)

    def _handle_signal(signum: int, frame: Optional[object]) -> None:
        LOG.info("Received signal %s, shutting down server...", signum)
        server.should_exit = True

    for signame in ("SIGINT", "SIGTERM"):
        signal.signal(getattr(signal, signame), _handle_signal)

    await server.serve()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="WebRTC signaling relay")
    parser.add_argument("--profile", default="default", help="relay profile to load")
    parser.add_argument(
        "--mode",
        default=None,
        help="'private' routes offers by destination; anything else broadcasts them",
    )
    parser.add_argument("--host", default=None, help="bind host for the relay")
    parser.add_argument("--port", type=int, default=None, help="bind port for the relay")
    parser.add_argument("--log-level", dest="log_level", default=None, help="logging level")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RelayConfig:
    return load_config(
        args.profile,
        overrides={
            "mode": args.mode,
            "host": args.host,
            "port": args.port,
            "log_level": args.log_level,
        },
    )


def run(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level or logging.INFO)
    try:
        config = build_config(args)
    except ConfigError as exc:
        raise SystemExit(f"configuration error: {exc}") from exc
    logging.getLogger().setLevel(resolve_level(config.log_level))

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        LOG.info("Relay interrupted by user.")


if __name__ == "__main__":
    run()
