"""Overlay window for recovery status and user guidance."""

from __future__ import annotations

from models import ErrorGuidance

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

_STATUS_STYLE = (
    "color: white; font-size: 16px; padding: 14px;"
    "background: rgba(0,0,0,190); border-radius: 12px;"
)
_GUIDANCE_STYLE = (
    "color: #FFD27F; font-size: 16px; padding: 16px;"
    "background: rgba(0,0,0,215); border-radius: 12px;"
)


def format_guidance(guidance: ErrorGuidance) -> str:
    """Render guidance as the rich text shown in the overlay."""
    lines = [f"<b>{guidance.title}</b>", guidance.message]
    if guidance.actions:
        lines.append(" · ".join(action.title for action in guidance.actions))
    if guidance.help_url:
        lines.append(f'<a href="{guidance.help_url}">Learn more</a>')
    return "<br>".join(lines)


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(
            Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool
        )
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(520)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setOpenExternalLinks(True)
        self._label.setStyleSheet(_STATUS_STYLE)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def show_status(self, text: str, hide_after_ms: int = 0) -> None:
        self._label.setStyleSheet(_STATUS_STYLE)
        self._show(text)
        if hide_after_ms:
            self.hide_with_delay(hide_after_ms)

    def show_guidance(self, guidance: ErrorGuidance, hide_after_ms: int = 8000) -> None:
        self._label.setStyleSheet(_GUIDANCE_STYLE)
        self._show(format_guidance(guidance))
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        self._hide_timer = QTimer()
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self.hide)
        self._hide_timer.start(delay_ms)

    def _show(self, text: str) -> None:
        self._cancel_hide_timer()
        self._label.setText(text)
        self._center_top()
        self.show()

    def _center_top(self) -> None:
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        self.move(x, geom.y() + 40)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
