from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class OverlayGate(Protocol):
    """
    What the state machine needs from a block screen. The widget behind it
    forwards a submitted code verbatim to Gatekeeper.submit_code(); it never
    trims or hashes the text itself.
    """

    def show(self, message: str, admin_mode: bool) -> None: ...

    def hide(self) -> None: ...

    def is_visible(self) -> bool: ...
