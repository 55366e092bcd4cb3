from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum


class AccessState(Enum):
    BOOT = "boot"
    CHECKING_LOCAL_LOCK = "checking_local_lock"
    LOCAL_LOCKED = "local_locked"
    CHECKING_GEO = "checking_geo"
    GEO_BLOCKED = "geo_blocked"
    CHECKING_REMOTE = "checking_remote"
    REMOTE_BLOCKED = "remote_blocked"
    ALLOWED = "allowed"

    @property
    def is_blocked(self) -> bool:
        return self in BLOCKED_STATES


BLOCKED_STATES = frozenset({
    AccessState.LOCAL_LOCKED,
    AccessState.GEO_BLOCKED,
    AccessState.REMOTE_BLOCKED,
})


@dataclass
class SessionState:
    """
    Process-lifetime gate state shared by the state machine and the few
    collaborators that read it. The geo bypass only ever goes False -> True.
    """
    state: AccessState = AccessState.BOOT
    geo_pass: bool = False
    remote_pass: bool = True
    _geo_bypass_session: bool = field(default=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def geo_bypass_session(self) -> bool:
        return self._geo_bypass_session

    def grant_geo_bypass(self) -> bool:
        """Returns True if this call turned the bypass on."""
        with self._lock:
            if self._geo_bypass_session:
                return False
            self._geo_bypass_session = True
            return True

    @property
    def geo_allowed(self) -> bool:
        return self.geo_pass or self._geo_bypass_session

    def usable(self, locally_locked: bool) -> bool:
        return self.geo_allowed and self.remote_pass and not locally_locked
