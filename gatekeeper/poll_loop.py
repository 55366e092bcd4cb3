from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Callable, Optional

from .controller import Gatekeeper, Job

log = logging.getLogger(__name__)

_STOP = object()


class PollLoop:
    """
    Dedicated worker that owns every network call of the gate.

    Runs the startup sequence once, then a remote check + heartbeat every
    ``remote_poll_seconds``. Forced refreshes and admin-code jobs are queued
    to the same thread, so at most one remote check and one heartbeat are in
    flight and a delayed response can't overwrite a newer one.
    """

    def __init__(self, gate: Gatekeeper, interval: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.gate = gate
        self.interval = max(1.0, float(interval if interval is not None else gate.config.remote_poll_seconds))
        self.clock = clock
        self.jobs: "queue.Queue[object]" = queue.Queue()
        self.ticks = 0
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, job: Job) -> None:
        self.jobs.put(job)

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self.gate.set_scheduler(self.submit)
        self._thread = threading.Thread(target=self._run, name="gatekeeper-poll", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stopping.set()
        self.jobs.put(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def _run_job(self, job: Job) -> None:
        try:
            job()
        except Exception:
            # the loop must outlive any failing tick
            log.exception("Gatekeeper job failed")

    def _tick(self) -> None:
        self.ticks += 1
        self._run_job(self.gate.poll_once)

    def _run(self) -> None:
        self._run_job(self.gate.startup)
        next_tick = self.clock()
        while not self._stopping.is_set():
            wait = next_tick - self.clock()
            if wait <= 0:
                self._tick()
                next_tick = self.clock() + self.interval
                continue
            try:
                job = self.jobs.get(timeout=wait)
            except queue.Empty:
                continue
            if job is _STOP:
                break
            self._run_job(job)
        log.debug("Poll loop stopped after %d ticks", self.ticks)
