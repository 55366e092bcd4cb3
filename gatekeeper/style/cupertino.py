# gatekeeper/style/cupertino.py
from __future__ import annotations
from PySide6.QtWidgets import QApplication
from PySide6.QtGui import QPalette, QColor, QFont

ACCENT = QColor("#0A84FF")   # macOS blue
BG     = QColor("#F5F5F7")
CARD   = QColor("#FFFFFF")
TEXT   = QColor("#1C1C1E")

# block screen: dimmed backdrop + centered card
OVERLAY_QSS = """
QWidget#GatekeeperOverlay { background: rgba(12, 12, 14, 215); }
QFrame#Card { background:#FFFFFF; border:1px solid #E5E5EA; border-radius:14px; padding:18px; }
QLabel { color:#1C1C1E; font-size:14px; }
QLabel#Title { font-size:18px; font-weight:600; }
QLabel#Feedback { color:#D70015; font-size:12px; }
QLineEdit { background:#FFFFFF; border:1px solid #E5E5EA; border-radius:10px; padding:8px 10px; }
QLineEdit:focus { border-color:#0A84FF; }
QPushButton[primary="true"] { background:#0A84FF; color:white; border:none; border-radius:10px; padding:8px 14px; }
QPushButton[primary="true"]:hover  { background:#0C7DFF; }
QPushButton[primary="true"]:pressed{ background:#0969DA; }
"""

def apply_cupertino(app: QApplication) -> None:
    app.setStyle("Fusion")

    pal = QPalette()
    pal.setColor(QPalette.Window, BG)
    pal.setColor(QPalette.Base, QColor("#FAFAFC"))
    pal.setColor(QPalette.Button, CARD)
    pal.setColor(QPalette.ButtonText, TEXT)
    pal.setColor(QPalette.Text, TEXT)
    pal.setColor(QPalette.WindowText, TEXT)
    pal.setColor(QPalette.Highlight, ACCENT)
    pal.setColor(QPalette.HighlightedText, QColor("white"))
    app.setPalette(pal)

    font_candidates = ["SF Pro Display", "Segoe UI Variable", "Segoe UI", "Noto Sans", "Noto Sans KR"]
    f = QFont()
    for name in font_candidates:
        f = QFont(name)
        if f.exactMatch():
            break
    f.setPointSizeF(11.0)
    app.setFont(f)
