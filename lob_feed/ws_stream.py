import asyncio
import contextlib
import json
import logging
import ssl
import time
from typing import Callable, Optional

from websockets.asyncio.client import connect as ws_connect  # type: ignore
from websockets.exceptions import ConnectionClosed  # type: ignore

from lob_core.types import Delta, Snapshot
from lob_feed.bybit import BybitAdapter, OpReply, Pong, SubscriptionAck


class BybitWSStream:
    """Async websocket session that subscribes to one orderbook topic and routes frames.

    A single connection is made per run(); when the server closes it or it
    errors, run() returns after notifying on_closed. close() may be called
    from any thread, also before run() starts, and the stream is not reusable
    after it.
    """

    def __init__(
        self,
        adapter: BybitAdapter,
        symbol: str,
        on_event: Callable[[object, int], None],
        depth: int = 1,
        on_subscribed: Optional[Callable[[SubscriptionAck], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        on_closed: Optional[Callable[[str], None]] = None,
        on_status: Optional[Callable[[str, dict], None]] = None,
        insecure_tls: bool = False,
        ping_interval_s: int = 20,
        open_timeout_s: float = 10.0,
        recv_poll_timeout_s: float = 5.0,
        max_queue: int = 256,
    ):
        self.adapter = adapter
        self.symbol = symbol
        self.depth = int(depth)
        self.topic = adapter.topic(symbol, self.depth)
        self.ws_url = adapter.ws_url()
        self.on_event = on_event
        self.on_subscribed_cb = on_subscribed
        self.on_error_cb = on_error
        self.on_closed_cb = on_closed
        self.on_status_cb = on_status
        self.insecure_tls = insecure_tls

        self.ping_interval_s = max(0, int(ping_interval_s))
        self.open_timeout_s = max(1.0, float(open_timeout_s))
        self.recv_poll_timeout_s = max(0.01, float(recv_poll_timeout_s))
        self.max_queue = max(1, int(max_queue))

        self._ws = None
        self._stop = False
        self._log = logging.getLogger("websocket")
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _emit_status(self, typ: str, details: dict) -> None:
        try:
            if self.on_status_cb:
                self.on_status_cb(typ, details)
        except Exception:
            self._log.exception("Status callback error (type=%s)", typ)

    def _notify_error(self, reason: str) -> None:
        self._log.error("WebSocket Error: %s", reason)
        try:
            if self.on_error_cb:
                self.on_error_cb(reason)
        except Exception:
            self._log.exception("Error callback failed")

    def _notify_closed(self, reason: str) -> None:
        self._log.info("WebSocket closed: %s", reason)
        try:
            if self.on_closed_cb:
                self.on_closed_cb(reason)
        except Exception:
            self._log.exception("Close callback failed")

    async def _send_json(self, payload: dict) -> None:
        assert self._ws is not None
        await self._ws.send(json.dumps(payload))

    async def _ping_loop(self) -> None:
        if self.ping_interval_s <= 0 or self._ws is None:
            return
        while not self._stop:
            await asyncio.sleep(self.ping_interval_s)
            if self._stop or self._ws is None:
                return
            try:
                await self._send_json(self.adapter.ping_message())
                self._emit_status("ws_ping", {})
            except Exception as exc:
                self._emit_status("ws_ping_failed", {"error": str(exc)})
                try:
                    await self._ws.close()
                except Exception:
                    pass
                return

    def _dispatch(self, payload: dict, recv_ms: int) -> Optional[str]:
        """Route one decoded frame. Returns an error reason when the session must end."""
        msg = self.adapter.parse_ws_message(payload)
        if msg is None:
            return None

        if isinstance(msg, Pong):
            self._emit_status("ws_pong", {})
            return None

        if isinstance(msg, OpReply):
            if not msg.success:
                self._log.warning("Request op=%s failed: %s", msg.op, msg.ret_msg)
            self._emit_status("ws_op_reply", {"op": msg.op, "success": msg.success, "ret_msg": msg.ret_msg})
            return None

        if isinstance(msg, SubscriptionAck):
            if not msg.success:
                return f"subscription rejected: {msg.ret_msg or 'unknown'}"
            self._log.info("Subscription successful.")
            self._emit_status("ws_subscribed", {"topic": self.topic, "conn_id": msg.conn_id})
            try:
                if self.on_subscribed_cb:
                    self.on_subscribed_cb(msg)
            except Exception:
                self._log.exception("Subscribed callback error")
            return None

        if isinstance(msg, (Snapshot, Delta)):
            try:
                self.on_event(msg, recv_ms)
            except Exception:
                self._log.exception("Callback error (topic=%s)", self.topic)
        return None

    async def _read_loop(self) -> Optional[str]:
        assert self._ws is not None
        while not self._stop:
            try:
                msg = await asyncio.wait_for(self._ws.recv(), timeout=self.recv_poll_timeout_s)
            except asyncio.TimeoutError:
                continue
            except ConnectionClosed as exc:
                self._emit_status("ws_close", {"code": getattr(exc, "code", None), "msg": str(exc)})
                return None
            except Exception as exc:
                self._emit_status("ws_error", {"error": str(exc)})
                return str(exc)

            if msg is None:
                return None

            recv_ms = int(time.time() * 1000)
            try:
                payload = json.loads(msg)
            except Exception:
                self._log.exception("Failed to parse WS message")
                continue

            error = self._dispatch(payload, recv_ms)
            if error:
                return error
        return None

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        if not self.insecure_tls:
            return None
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        return ctx

    async def _run_async(self) -> bool:
        self._loop = asyncio.get_running_loop()
        if self._stop:
            # close() was called before the loop started; never connect.
            self._notify_closed("client_close")
            return True
        error: Optional[str] = None
        close_reason = ""

        connect_kwargs = {
            "ping_interval": None,
            "ping_timeout": None,
            "open_timeout": self.open_timeout_s,
            "close_timeout": 5,
            "max_queue": self.max_queue,
        }
        ssl_ctx = self._ssl_context()
        if ssl_ctx is not None:
            connect_kwargs["ssl"] = ssl_ctx

        try:
            async with ws_connect(self.ws_url, **connect_kwargs) as ws:
                self._ws = ws
                self._emit_status("ws_connect", {"url": self.ws_url})
                await self._send_json(self.adapter.subscribe_message(self.symbol, self.depth))
                self._log.info("Subscribed to %s", self.topic)

                ping_task = asyncio.create_task(self._ping_loop())
                try:
                    error = await self._read_loop()
                finally:
                    ping_task.cancel()
                    with contextlib.suppress(Exception, asyncio.CancelledError):
                        await ping_task
                close_code = getattr(ws, "close_code", None)
                close_reason = getattr(ws, "close_reason", None) or ""
                if close_code is not None or close_reason:
                    self._emit_status("ws_close", {"code": close_code, "msg": close_reason})
        except Exception as exc:
            self._emit_status("ws_run_exception", {"error": str(exc)})
            self._log.exception("WebSocket run exception")
            error = str(exc)
        finally:
            self._ws = None

        if error:
            self._notify_error(error)
            close_reason = close_reason or error
        self._notify_closed(close_reason or ("client_close" if self._stop else "server_close"))
        return error is None

    def run(self) -> bool:
        """Run one websocket session; blocks until it closes. Returns False on error."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            raise RuntimeError("BybitWSStream.run() cannot be called from an active event loop.")
        return asyncio.run(self._run_async())

    def close(self) -> None:
        self._stop = True
        ws = self._ws
        if ws is None:
            return
        try:
            loop = asyncio.get_running_loop()
            loop.create_task(ws.close())
            return
        except RuntimeError:
            loop = self._loop
        if loop and loop.is_running():
            asyncio.run_coroutine_threadsafe(ws.close(), loop)
