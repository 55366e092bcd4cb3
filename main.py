from __future__ import annotations
import logging
import sys

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QVBoxLayout, QWidget

from gatekeeper.controller import Gatekeeper
from gatekeeper.i18n_loader import _, apply_config_locale
from gatekeeper.poll_loop import PollLoop
from gatekeeper.remote import RemoteControlClient
from gatekeeper.security.lock_store import LocalLockStore
from gatekeeper.security.overlay_widget import GatekeeperOverlay, InputSuppressor
from gatekeeper.session import AccessState
from gatekeeper.settings import SETTINGS_FILE, load_config, save_config
from gatekeeper.style.cupertino import apply_cupertino

log = logging.getLogger("gatekeeper")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # urllib3 is noisy at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


class HostWindow(QMainWindow):
    """Stand-in for the gated application; pauses itself while blocked."""

    pauseRequested = Signal(bool)

    def __init__(self):
        super().__init__()
        self.pauseRequested.connect(self.set_paused)
        self.setWindowTitle("Gatekeeper")
        self.resize(1000, 720)
        body = QWidget(self)
        lay = QVBoxLayout(body)
        self.statusLabel = QLabel(_("Application running"), body)
        self.statusLabel.setAlignment(Qt.AlignCenter)
        lay.addWidget(self.statusLabel)
        self.setCentralWidget(body)
        self.body = body

    def set_paused(self, paused: bool) -> None:
        self.statusLabel.setText(_("Application paused") if paused else _("Application running"))


def main():
    if not SETTINGS_FILE.exists():
        save_config(load_config())  # first run: write defaults for the operator to edit
    config = load_config()
    _setup_logging(config.verbose_logs)
    apply_config_locale(config)
    log.info("Gatekeeper starting (settings=%s, remote=%s)", SETTINGS_FILE,
             config.remote_control_url or "disabled")

    app = QApplication(sys.argv)
    apply_cupertino(app)

    win = HostWindow()
    gate = Gatekeeper(config, RemoteControlClient(config), LocalLockStore())
    overlay = GatekeeperOverlay(win, submit_handler=gate.submit_code)
    suppressor = InputSuppressor(overlay, [win.body])  # noqa: F841
    gate.attach_overlay(overlay)

    def _on_state(state: AccessState, usable: bool):
        # emitted from the poll worker; the signal hops to the GUI thread
        win.pauseRequested.emit(not usable or state is not AccessState.ALLOWED)

    gate.own(gate.state_changed.subscribe(_on_state))

    def _on_app_state(app_state):
        gate.on_focus_changed(app_state == Qt.ApplicationActive)

    app.applicationStateChanged.connect(_on_app_state)

    loop = PollLoop(gate)
    loop.start()
    win.show()
    try:
        return app.exec()
    finally:
        app.applicationStateChanged.disconnect(_on_app_state)
        loop.stop(timeout=2.0)
        gate.close()


if __name__ == "__main__":
    sys.exit(main())
