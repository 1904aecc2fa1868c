"""
FastAPI surface for the rendezvous relay.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..config import RelayConfig
from ..signaling import Router, SignalingState

LOG = logging.getLogger(__name__)


class RelaySession:
    """Track one WebSocket connection and pump its send/receive loops."""

    def __init__(self, manager: "RelayManager", websocket: WebSocket, *, queue_size: int) -> None:
        self.manager = manager
        self.websocket = websocket
        self.session_id = uuid.uuid4().hex
        self.send_queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue(maxsize=queue_size)
        self._stop_event = asyncio.Event()
        self._closing = False
        self.logger = LOG.getChild(f"ws.{self.session_id[:8]}")

    def __repr__(self) -> str:
        return f"RelaySession({self.session_id[:8]})"

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    async def run(self) -> None:
        try:
            await self.websocket.accept()
        except Exception:  # pragma: no cover - defensive
            self.logger.exception("Failed to accept WebSocket connection")
            return

        self.manager.open_session(self)
        try:
            async with asyncio.TaskGroup() as task_group:
                task_group.create_task(self._recv_loop())
                task_group.create_task(self._send_loop())
        except asyncio.CancelledError:
            raise
        except Exception:  # pragma: no cover - defensive
            self.logger.exception("Relay session crashed")
        finally:
            self.manager.close_session(self)
            await self.close(code=1000)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        if self._closing:
            return
        self._closing = True
        self._stop_event.set()
        with contextlib.suppress(RuntimeError, WebSocketDisconnect):
            await self.websocket.close(code=code, reason=reason)

    def enqueue(self, payload: Dict[str, Any]) -> None:
        """Queue ``payload`` for delivery without waiting; drops on backpressure."""

        if self.is_stopped:
            return
        try:
            self.send_queue.put_nowait(payload)
        except asyncio.QueueFull:
            self.logger.debug("Dropping %s message due to backpressure", payload.get("type"))

    async def _recv_loop(self) -> None:
        try:
            while not self.is_stopped:
                try:
                    event = await self.websocket.receive()
                except asyncio.CancelledError:
                    raise
                except WebSocketDisconnect:
                    break
                except Exception:  # pragma: no cover - safety net
                    self.logger.exception("Failed to receive message")
                    break

                if event.get("type") == "websocket.disconnect":
                    break

                frame = event.get("text")
                if frame is None:
                    # binary frames carry the same JSON envelope
                    raw = event.get("bytes") or b""
                    try:
                        frame = raw.decode("utf-8")
                    except UnicodeDecodeError:
                        self.logger.debug("Dropping undecodable binary frame")
                        continue

                try:
                    message = json.loads(frame)
                except ValueError:
                    self.logger.debug("Dropping non-JSON frame")
                    continue
                if not isinstance(message, dict):
                    self.logger.debug("Dropping non-object frame")
                    continue

                self.manager.handle_message(self, message)
        finally:
            self._stop_event.set()

    async def _send_loop(self) -> None:
        try:
            while not self.is_stopped:
                try:
                    payload = await asyncio.wait_for(self.send_queue.get(), timeout=0.5)
                except asyncio.TimeoutError:
                    continue

                try:
                    await self.websocket.send_json(payload)
                except asyncio.CancelledError:
                    raise
                except WebSocketDisconnect:
                    break
                except RuntimeError as exc:
                    message = str(exc)
                    if "close message has been sent" in message:
                        self.logger.debug("Send after close ignored: %s", message)
                    else:
                        self.logger.exception("Failed to send message", exc_info=exc)
                    break
                except Exception:  # pragma: no cover - defensive
                    self.logger.exception("Failed to send message")
                    break
                finally:
                    self.send_queue.task_done()
        finally:
            self._stop_event.set()


class RelayManager:
    """Own the signaling state and bridge WebSocket sessions to the router."""

    def __init__(
        self,
        config: RelayConfig,
        *,
        state: Optional[SignalingState[RelaySession]] = None,
    ) -> None:
        self.config = config
        self.state: SignalingState[RelaySession] = state or SignalingState()
        self.router: Router[RelaySession] = Router(
            self.state, self._deliver, private=config.is_private
        )
        self.queue_size = max(1, int(config.send_queue_size))
        self.ttl_ms = int(max(0.0, float(config.negotiation_ttl)) * 1000)
        self.sweep_interval = max(0.1, float(config.sweep_interval))
        self._sweep_task: Optional[asyncio.Task] = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        if self.ttl_ms > 0:
            self._sweep_task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._sweep_task:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None

    async def _sweep_loop(self) -> None:
        try:
            while self._running:
                await asyncio.sleep(self.sweep_interval)
                self.state.evict_stale(self.ttl_ms)
        except asyncio.CancelledError:
            pass
        except Exception:  # pragma: no cover - defensive
            LOG.exception("Negotiation sweep failed.")
        finally:
            self._sweep_task = None

    async def run(self, websocket: WebSocket) -> None:
        session = RelaySession(self, websocket, queue_size=self.queue_size)
        await session.run()

    def open_session(self, session: RelaySession) -> None:
        self.router.on_open(session)
        LOG.info("Relay client connected session=%s", session.session_id)

    def close_session(self, session: RelaySession) -> None:
        self.router.on_close(session)
        LOG.info("Relay client disconnected session=%s", session.session_id)

    def handle_message(self, session: RelaySession, message: Dict[str, Any]) -> None:
        self.router.dispatch(session, message)

    @staticmethod
    def _deliver(session: RelaySession, payload: Dict[str, Any]) -> None:
        session.enqueue(payload)


def create_app(
    *,
    config: Optional[RelayConfig] = None,
    state: Optional[SignalingState[RelaySession]] = None,
    lifespan: Optional[Callable[[FastAPI], AsyncContextManager[None]]] = None,
) -> FastAPI:
    relay_config = config or RelayConfig()
    relay = RelayManager(relay_config, state=state)

    @asynccontextmanager
    async def app_lifespan(app: FastAPI) -> AsyncIterator[None]:
        await relay.start()
        try:
            if lifespan is None:
                yield
            else:
                async with lifespan(app):
                    yield
        finally:
            await relay.stop()

    app = FastAPI(title="Rendezvous Relay", lifespan=app_lifespan)
    app.state.relay = relay
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.websocket("/")
    async def websocket_root(websocket: WebSocket) -> None:
        await relay.run(websocket)

    @app.websocket("/signaling")
    async def websocket_signaling(websocket: WebSocket) -> None:
        await relay.run(websocket)

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "mode": relay_config.mode}

    @app.get("/config")
    async def client_config() -> dict:
        return {"useWebSocket": True, "startupMode": relay_config.mode}

    @app.get("/api/state")
    async def get_state() -> dict:
        return relay.state.snapshot()

    return app


__all__ = ["RelayManager", "RelaySession", "create_app"]
