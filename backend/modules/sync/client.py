"""
Remote schedule sync client.

Pushes the full schedule snapshot to the update-schedule endpoint after every
change. Pushes are queued to one daemon worker thread and sent in the order
they were made, so the newest remote row always holds the newest snapshot and
commands never wait on the network. A push can be cancelled until its request
is sent; failures are logged and published as sync.failed and never touch
local state.
"""

import logging
import queue
import threading
from typing import Optional

import httpx

from core.events import SCHEDULE_UNDONE, SCHEDULE_UPDATED, SYNC_COMPLETED, SYNC_FAILED
from core.interfaces.event_bus import Event, EventBus

log = logging.getLogger("rmi.sync")


class SyncHandle:
    """Tracks one push: cancel() before it is sent, wait() for the outcome."""

    def __init__(self):
        self._cancelled = threading.Event()
        self._done = threading.Event()
        self._sending = False
        self._lock = threading.Lock()
        self.ok: Optional[bool] = None
        self.status_code: Optional[int] = None
        self.error: Optional[str] = None

    def cancel(self) -> bool:
        """Cancel the push. Returns False once the request is already on its way."""
        with self._lock:
            if self._sending or self._done.is_set():
                return False
            self._cancelled.set()
            return True

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _start_sending(self) -> bool:
        with self._lock:
            if self._cancelled.is_set():
                return False
            self._sending = True
            return True

    def _finish(self, ok: bool, status_code: Optional[int] = None, error: Optional[str] = None):
        self.ok = ok
        self.status_code = status_code
        self.error = error
        self._done.set()


class RemoteSyncClient:
    """Best-effort, fire-and-forget schedule push over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        bus: Optional[EventBus] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._bus = bus
        self._transport = transport
        self._queue: "queue.Queue[tuple[dict, SyncHandle]]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()

    def push(self, snapshot: dict) -> SyncHandle:
        """Queue a push behind any pending ones and return its handle."""
        handle = SyncHandle()
        self._queue.put((snapshot, handle))
        self._ensure_worker()
        return handle

    def subscribe(self, bus: EventBus) -> None:
        """Push a snapshot whenever the schedule changes."""
        bus.subscribe(SCHEDULE_UPDATED, self.on_schedule_changed)
        bus.subscribe(SCHEDULE_UNDONE, self.on_schedule_changed)

    def on_schedule_changed(self, event: Event) -> None:
        snapshot = event.data.get("snapshot")
        if snapshot is None:
            return
        self.push(snapshot)

    def _ensure_worker(self) -> None:
        with self._worker_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._run, name="rmi-sync", daemon=True)
                self._worker.start()

    def _run(self) -> None:
        while True:
            snapshot, handle = self._queue.get()
            try:
                self._send(snapshot, handle)
            except Exception as e:
                log.error(f"Schedule sync worker error: {e}", exc_info=True)
                if not handle.done:
                    handle._finish(False, error=str(e))
            finally:
                self._queue.task_done()

    def _send(self, snapshot: dict, handle: SyncHandle) -> None:
        if not handle._start_sending():
            log.debug("Schedule sync cancelled before sending")
            handle._finish(False, error="cancelled")
            return
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.url, json={"scheduleData": snapshot})
            if resp.status_code != 200:
                raise RuntimeError(f"HTTP {resp.status_code}: {resp.text[:200]}")
        except Exception as e:
            log.warning(f"Remote schedule sync failed: {e}")
            handle._finish(False, error=str(e))
            self._publish(SYNC_FAILED, {"error": str(e)})
            return

        log.debug(f"Schedule synced to {self.url}")
        handle._finish(True, status_code=resp.status_code)
        self._publish(SYNC_COMPLETED, {"status_code": resp.status_code})

    def _publish(self, event_type: str, data: dict) -> None:
        if self._bus is not None:
            self._bus.publish(Event(event_type=event_type, source_module="sync", data=data))
