from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from PySide6.QtCore import QEvent, QObject, Qt, QTimer, Signal
from PySide6.QtWidgets import (
    QFrame, QLabel, QLineEdit, QPushButton, QVBoxLayout, QWidget
)

from gatekeeper.i18n_loader import _
from gatekeeper.style.cupertino import OVERLAY_QSS

log = logging.getLogger(__name__)


class GatekeeperOverlay(QWidget):
    """
    Full-window block screen. Implements the OverlayGate contract
    (show / hide / is_visible); show() and hide() may be called from the
    poll worker, the actual widget work is queued onto the GUI thread.
    """

    visibilityChanged = Signal(bool)
    _showRequested = Signal(str, bool)
    _hideRequested = Signal()

    def __init__(self, parent: Optional[QWidget] = None,
                 submit_handler: Optional[Callable[[str], bool]] = None,
                 auto_focus_input: bool = True):
        super().__init__(parent)
        self.setObjectName("GatekeeperOverlay")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setStyleSheet(OVERLAY_QSS)
        self.submit_handler = submit_handler
        self.auto_focus_input = auto_focus_input
        self._visible = False
        self._visible_lock = threading.Lock()

        root = QVBoxLayout(self)
        root.setAlignment(Qt.AlignCenter)

        self.panel = QFrame(self)
        self.panel.setObjectName("Card")
        self.panel.setMaximumWidth(460)
        lay = QVBoxLayout(self.panel)
        lay.setSpacing(12)

        self.titleLabel = QLabel(_("Access blocked"), self.panel)
        self.titleLabel.setObjectName("Title")
        lay.addWidget(self.titleLabel)

        self.messageLabel = QLabel("", self.panel)
        self.messageLabel.setWordWrap(True)
        lay.addWidget(self.messageLabel)

        self.codeEdit = QLineEdit(self.panel)
        self.codeEdit.setEchoMode(QLineEdit.Password)
        self.codeEdit.setPlaceholderText(_("Admin code"))
        self.codeEdit.returnPressed.connect(self.onSubmit)
        lay.addWidget(self.codeEdit)

        self.submitBtn = QPushButton(_("Submit"), self.panel)
        self.submitBtn.setProperty("primary", True)
        self.submitBtn.clicked.connect(self.onSubmit)
        lay.addWidget(self.submitBtn)

        self.feedbackLabel = QLabel("", self.panel)
        self.feedbackLabel.setObjectName("Feedback")
        lay.addWidget(self.feedbackLabel)

        root.addWidget(self.panel)

        self._showRequested.connect(self._apply_show)
        self._hideRequested.connect(self._apply_hide)

        if parent is not None:
            parent.installEventFilter(self)
            self.setGeometry(parent.rect())
        QWidget.hide(self)

    # ---------- OverlayGate ----------
    def show(self, message: str, admin_mode: bool = True) -> None:  # noqa: A003
        with self._visible_lock:
            self._visible = True
        self._showRequested.emit(message or "", bool(admin_mode))

    def hide(self) -> None:
        with self._visible_lock:
            self._visible = False
        self._hideRequested.emit()

    def is_visible(self) -> bool:
        with self._visible_lock:
            return self._visible

    # ---------- GUI thread ----------
    def _apply_show(self, message: str, admin_mode: bool) -> None:
        log.debug("Show(admin_mode=%s) msg=%r", admin_mode, message)
        self.messageLabel.setText(message)
        self.codeEdit.setVisible(admin_mode)
        self.submitBtn.setVisible(admin_mode)
        self.feedbackLabel.setText("")
        if self.parentWidget() is not None:
            self.setGeometry(self.parentWidget().rect())
        QWidget.show(self)
        self.raise_()
        if admin_mode and self.auto_focus_input:
            QTimer.singleShot(0, self._focus_input)
        if self.submit_handler is None:
            log.error("Overlay has no submit handler; admin codes cannot be entered")
        self.visibilityChanged.emit(True)

    def _apply_hide(self) -> None:
        log.debug("Hide()")
        QWidget.hide(self)
        self.feedbackLabel.setText("")
        self.visibilityChanged.emit(False)

    def _focus_input(self) -> None:
        if self.codeEdit.isVisible():
            self.codeEdit.setFocus(Qt.OtherFocusReason)
            self.codeEdit.selectAll()

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:
        if obj is self.parentWidget() and event.type() == QEvent.Resize:
            self.setGeometry(obj.rect())
        return super().eventFilter(obj, event)

    def setFeedback(self, msg: str) -> None:
        self.feedbackLabel.setText(msg)

    def onSubmit(self) -> None:
        if self.submit_handler is None:
            log.error("Submit pressed but no gatekeeper is bound to the overlay")
            self.setFeedback(_("System error. Gatekeeper not found."))
            return

        code = self.codeEdit.text()
        log.debug("Submitting code (len=%d)", len(code))
        if not code:
            self.setFeedback(_("Please enter a code."))
            return

        if self.submit_handler(code):
            self.setFeedback("")
            self.codeEdit.clear()
        else:
            self.setFeedback(_("Invalid code. Try again."))
            # keep focus for a quick retry
            self._focus_input()


class InputSuppressor(QObject):
    """Disables host widgets while the overlay is up so input can't leak past it."""

    def __init__(self, overlay: GatekeeperOverlay, widgets: Optional[List[QWidget]] = None):
        super().__init__(overlay)
        self.widgets: List[QWidget] = list(widgets or [])
        overlay.visibilityChanged.connect(self.refresh)
        self.refresh(overlay.is_visible())

    def add(self, widget: QWidget) -> None:
        self.widgets.append(widget)
        widget.setEnabled(not self.parent().is_visible())

    def refresh(self, overlay_visible: bool) -> None:
        for w in self.widgets:
            w.setEnabled(not overlay_visible)
