"""
Tests for the PySide6 block screen. Run headless with the offscreen platform.
"""

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from gatekeeper.overlay import OverlayGate  # noqa: E402
from gatekeeper.security.overlay_widget import GatekeeperOverlay, InputSuppressor  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


@pytest.fixture
def host(qapp):
    w = QtWidgets.QWidget()
    w.resize(640, 480)
    w.show()
    yield w
    w.close()
    w.deleteLater()


class _Handler:
    def __init__(self, result):
        self.result = result
        self.codes = []

    def __call__(self, code):
        self.codes.append(code)
        return self.result


def test_implements_contract(host):
    assert isinstance(GatekeeperOverlay(host), OverlayGate)


def test_show_and_hide(qapp, host):
    ov = GatekeeperOverlay(host, submit_handler=_Handler(True))
    assert ov.is_visible() is False
    ov.show("Blocked!", True)
    assert ov.is_visible() is True
    qapp.processEvents()
    assert ov.isVisible()
    assert ov.messageLabel.text() == "Blocked!"
    assert ov.codeEdit.isVisibleTo(ov)

    ov.hide()
    assert ov.is_visible() is False
    qapp.processEvents()
    assert not ov.isVisible()


def test_non_admin_mode_hides_input(qapp, host):
    ov = GatekeeperOverlay(host, submit_handler=_Handler(True))
    ov.show("Blocked", False)
    qapp.processEvents()
    assert not ov.codeEdit.isVisibleTo(ov)
    assert not ov.submitBtn.isVisibleTo(ov)


def test_code_forwarded_verbatim(qapp, host):
    handler = _Handler(True)
    ov = GatekeeperOverlay(host, submit_handler=handler)
    ov.show("Blocked", True)
    qapp.processEvents()
    ov.codeEdit.setText("  Open-5678 ")
    ov.onSubmit()
    assert handler.codes == ["  Open-5678 "]
    assert ov.codeEdit.text() == ""
    assert ov.feedbackLabel.text() == ""


def test_rejected_code_keeps_text_and_shows_feedback(qapp, host):
    ov = GatekeeperOverlay(host, submit_handler=_Handler(False))
    ov.show("Blocked", True)
    qapp.processEvents()
    ov.codeEdit.setText("wrong")
    ov.onSubmit()
    assert ov.feedbackLabel.text() == "Invalid code. Try again."
    assert ov.codeEdit.text() == "wrong"


def test_empty_code_not_forwarded(qapp, host):
    handler = _Handler(True)
    ov = GatekeeperOverlay(host, submit_handler=handler)
    ov.show("Blocked", True)
    qapp.processEvents()
    ov.onSubmit()
    assert handler.codes == []
    assert ov.feedbackLabel.text() == "Please enter a code."


def test_unbound_overlay_reports_error(qapp, host):
    ov = GatekeeperOverlay(host)
    ov.codeEdit.setText("x")
    ov.onSubmit()
    assert ov.feedbackLabel.text() == "System error. Gatekeeper not found."


def test_input_suppressor(qapp, host):
    ov = GatekeeperOverlay(host, submit_handler=_Handler(True))
    other = QtWidgets.QPushButton("play", host)
    suppressor = InputSuppressor(ov, [other])
    assert suppressor.widgets == [other]
    assert other.isEnabled()
    ov.show("Blocked", True)
    qapp.processEvents()
    assert not other.isEnabled()
    ov.hide()
    qapp.processEvents()
    assert other.isEnabled()
