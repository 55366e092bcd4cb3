from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .overlay import OverlayGate
from .remote import RemoteControlClient, STATUS_LIVE, STATUS_LOCKED
from .security.digest import matches_digest, normalize_code
from .security.lock_store import LocalLockStore
from .session import AccessState, SessionState
from .settings import GatekeeperConfig
from .subscriptions import EventHook, SubscriptionGroup

log = logging.getLogger(__name__)

REFRESH_COMMAND = "refresh"

Job = Callable[[], None]


def run_inline(job: Job) -> None:
    job()


class Gatekeeper:
    """
    Owns the gating decision. Sequences local lock -> geo -> remote at
    startup, reacts to poll ticks, focus regained and admin codes.

    Everything that touches the network or mutates gate state runs as a job
    through ``schedule`` (inline by default, the PollLoop worker in the app)
    and inside the critical section, so ticks and submissions never
    interleave.
    """

    def __init__(self, config: GatekeeperConfig,
                 client: RemoteControlClient,
                 lock_store: LocalLockStore,
                 overlay: Optional[OverlayGate] = None,
                 session: Optional[SessionState] = None,
                 clock: Callable[[], float] = time.time):
        self.config = config
        self.client = client
        self.lock_store = lock_store
        self.overlay = overlay
        self.session = session or SessionState()
        self.clock = clock

        # (state, usable) after every block/unblock
        self.state_changed = EventHook("state_changed")

        self._critical = threading.RLock()
        self._schedule: Callable[[Job], None] = run_inline
        self._subs = SubscriptionGroup()
        self._warned_no_overlay = False

    # ---------- wiring ----------
    def set_scheduler(self, schedule: Callable[[Job], None]) -> None:
        self._schedule = schedule

    def attach_overlay(self, overlay: OverlayGate) -> None:
        self.overlay = overlay

    def own(self, subscription):
        """Keep a subscription alive until close()."""
        return self._subs.add(subscription)

    def close(self) -> None:
        self._subs.dispose()

    @property
    def state(self) -> AccessState:
        return self.session.state

    # ---------- predicates ----------
    def is_locally_locked(self) -> bool:
        return self.lock_store.is_locally_locked()

    def is_usable(self) -> bool:
        return self.session.usable(self.is_locally_locked())

    def overlay_visible(self) -> bool:
        return self.overlay is not None and self.overlay.is_visible()

    def current_status(self) -> str:
        live = self.is_usable() and not self.overlay_visible() and self.state is AccessState.ALLOWED
        return STATUS_LIVE if live else STATUS_LOCKED

    # ---------- startup ----------
    def startup(self) -> AccessState:
        with self._critical:
            self._set_state(AccessState.CHECKING_LOCAL_LOCK)
            if self.is_locally_locked():
                self._block(AccessState.LOCAL_LOCKED, self.config.shutdown_message)
                return self.state

            self._set_state(AccessState.CHECKING_GEO)
            self.session.geo_pass = self.client.check_geo()
            if not self.session.geo_allowed:
                self._block(AccessState.GEO_BLOCKED, self.config.block_message_outside)
                return self.state

            self._set_state(AccessState.CHECKING_REMOTE)
            self._refresh_remote()
            if not self.session.remote_pass:
                self._block(AccessState.REMOTE_BLOCKED, self.config.shutdown_message)
                return self.state

            self._allow()
            return self.state

    # ---------- poll tick / forced refresh ----------
    def poll_once(self) -> None:
        with self._critical:
            self._refresh_remote()
            if not self.session.remote_pass:
                self._block(AccessState.REMOTE_BLOCKED, self.config.shutdown_message)
            elif self.state is not AccessState.ALLOWED:
                self._reevaluate()
            self.send_heartbeat()

    force_refresh = poll_once

    def request_refresh(self) -> None:
        self._schedule(self.force_refresh)

    def on_focus_changed(self, focused: bool) -> None:
        # a suspended process can miss ticks; regaining focus resyncs
        if focused:
            self.request_refresh()

    def send_heartbeat(self) -> None:
        with self._critical:
            status = self.current_status()
            self.client.send_heartbeat(status)
            log.debug("Heartbeat sent status=%s", status)

    # ---------- admin codes ----------
    def submit_code(self, text: str) -> bool:
        """
        Returns whether the code was accepted. The resulting state change
        runs as a scheduled job.
        """
        if not isinstance(text, str) or text == "":
            return False
        if text.lower() == REFRESH_COMMAND:
            log.info("Admin REFRESH requested")
            self.request_refresh()
            return True

        candidate = normalize_code(text)
        if matches_digest(candidate, self.config.lock_code_hash_hex):
            log.info("Lock code accepted")
            self._schedule(self._apply_lock_code)
            return True
        if matches_digest(candidate, self.config.unlock_code_hash_hex):
            log.info("Unlock code accepted")
            self._schedule(self._apply_unlock_code)
            return True

        log.warning("Admin code rejected")
        return False

    def _apply_lock_code(self) -> None:
        with self._critical:
            self.lock_store.set_locally_locked(True)
            self._block(AccessState.LOCAL_LOCKED, self.config.shutdown_message)
            self.send_heartbeat()

    def _apply_unlock_code(self) -> None:
        with self._critical:
            self.lock_store.set_locally_locked(False)
            if self.session.grant_geo_bypass():
                log.info("Unlock code -> GEO bypass (session) enabled.")
            self._refresh_remote()
            if self.session.remote_pass:
                self._reevaluate()
            else:
                self._block(AccessState.REMOTE_BLOCKED, self.config.shutdown_message)
            self.send_heartbeat()

    # ---------- internals ----------
    def _refresh_remote(self) -> None:
        outcome = self.client.check_remote(force_no_cache=True)
        self.session.remote_pass = outcome.remote_pass
        dto = outcome.response
        if dto is None:
            return
        if dto.shutdown and dto.message and dto.message.strip():
            self.config.override_shutdown_message(dto.message)
        if dto.allow_window_open(self.clock()):
            if self.is_locally_locked():
                self.lock_store.set_locally_locked(False)
                log.info("Server force_allow -> cleared local lock.")
            if self.session.grant_geo_bypass():
                log.info("Server force_allow -> GEO bypass (session) enabled.")

    def _reevaluate(self) -> None:
        if self.is_locally_locked():
            self._block(AccessState.LOCAL_LOCKED, self.config.shutdown_message)
        elif not self.session.geo_allowed:
            self._block(AccessState.GEO_BLOCKED, self.config.block_message_outside)
        elif not self.session.remote_pass:
            self._block(AccessState.REMOTE_BLOCKED, self.config.shutdown_message)
        else:
            self._allow()

    def _set_state(self, state: AccessState, note: str = "") -> None:
        changed = self.session.state is not state
        self.session.state = state
        if changed:
            log.info("[STATE:%s] %s", state.name, note)

    def _block(self, state: AccessState, message: str) -> None:
        self._set_state(state, "BLOCKED")
        if self.overlay is not None:
            self.overlay.show(message, True)
        elif not self._warned_no_overlay:
            self._warned_no_overlay = True
            log.error("Overlay is not wired; cannot show block screen (%s)", message)
        self.state_changed.emit(state, False)

    def _allow(self) -> None:
        self._set_state(AccessState.ALLOWED, "ALLOWED")
        if self.overlay is not None:
            self.overlay.hide()
        self.state_changed.emit(AccessState.ALLOWED, self.is_usable())
