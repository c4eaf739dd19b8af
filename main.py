"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from typing import Any, Coroutine

from auto_paste import ClipboardPasteService
from component_recovery import ComponentRecovery
from config import JsonConfigStore
from diagnostics import DiagnosticsManager
from errors import AppError, ErrorKind
from guidance import GuidanceCenter
from hotkey import AccessibilityPermissionChecker, GlobalHotkeyAdapter
from interfaces import Collaborators
from ledger import StrategyOutcomeLedger
from models import Component, ErrorGuidance, RecoveryState, RecoveryStatus
from overlay import OverlayWindow
from recorder import SoundDeviceAudioSystem
from recognizer import DashscopeTranscriptionEngine
from recovery_orchestrator import ErrorRecoveryOrchestrator

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger("dictate-recovery")


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"
ICON_RECORDING = "#FF4444"
ICON_RECOVERING = "#3399FF"
ICON_ERROR = "#FF8800"


class UIBridge(QObject):
    status_signal = Signal(str, str)  # state, message
    guidance_signal = Signal(object)
    recording_signal = Signal(bool)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        settings = self.config_store.get_recovery_settings()

        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.status_signal.connect(self._on_status_ui)
        self.ui.guidance_signal.connect(self._on_guidance_ui)
        self.ui.recording_signal.connect(self._on_recording_ui)

        self.loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(target=self.loop.run_forever, daemon=True)

        self.audio = SoundDeviceAudioSystem()
        self.engine = DashscopeTranscriptionEngine(api_key=self.config_store.get_api_key())
        self.paste_service = ClipboardPasteService()
        self.hotkey = GlobalHotkeyAdapter(
            on_press=self._on_hotkey_press,
            on_release=self._on_hotkey_release,
            hotkey_name=self.config_store.get_hotkey(),
        )
        self.collaborators = Collaborators(
            audio=self.audio,
            transcription=self.engine,
            text_insertion=self.paste_service,
            hotkey=self.hotkey,
            permissions=AccessibilityPermissionChecker(),
        )

        self.guidance = GuidanceCenter()
        self.guidance.add_listener(self._on_guidance)
        self.diagnostics = DiagnosticsManager(self.collaborators)
        self.orchestrator = ErrorRecoveryOrchestrator(
            executor=ComponentRecovery(self.collaborators, settle_delay_s=settings.settle_delay_s),
            ledger=StrategyOutcomeLedger(capacity=settings.ledger_capacity),
            diagnostics=self.diagnostics,
            guidance=self.guidance,
            settings=settings,
            on_status_change=self._on_status_change,
        )

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("Dictation: Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        hotkey_action = QAction("Set Hotkey", menu)
        hotkey_action.triggered.connect(self._set_hotkey)
        menu.addAction(hotkey_action)

        menu.addSeparator()
        recover_menu = menu.addMenu("Recover")
        for component in Component:
            action = QAction(component.display_name, recover_menu)
            action.triggered.connect(
                lambda _checked=False, c=component: self._submit(
                    self.orchestrator.recover_component(c)
                )
            )
            recover_menu.addAction(action)

        health_action = QAction("Run Health Check", menu)
        health_action.triggered.connect(self._run_health_check)
        menu.addAction(health_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.engine = DashscopeTranscriptionEngine(api_key=value)
        self.collaborators.transcription = self.engine
        self._submit(self._load_model())
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.alt_l"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    def _run_health_check(self) -> None:
        future = self._submit(self.orchestrator.check_health())
        future.add_done_callback(self._on_health_report)

    def _on_health_report(self, future: Any) -> None:
        if future.cancelled() or future.exception() is not None:
            return
        report = future.result()
        if report.is_healthy:
            self.ui.status_signal.emit(RecoveryState.COMPLETED.value, "All systems healthy")
        else:
            summary = "; ".join(issue.description for issue in report.issues)
            self.ui.status_signal.emit(RecoveryState.FAILED.value, summary)

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_status_change(self, from_status: RecoveryStatus, to_status: RecoveryStatus) -> None:
        self.ui.status_signal.emit(to_status.state.value, to_status.display_message)

    def _on_guidance(self, guidance: ErrorGuidance, error: AppError, component: Component) -> None:
        self.ui.guidance_signal.emit(guidance)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_status_ui(self, state: str, message: str) -> None:
        if state in (RecoveryState.DETECTING.value, RecoveryState.RECOVERING.value):
            self.tray.setIcon(_create_icon(ICON_RECOVERING))
            self.overlay.show_status(message)
        elif state == RecoveryState.COMPLETED.value:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.overlay.show_status(message, hide_after_ms=1500)
        elif state == RecoveryState.FAILED.value:
            self.tray.setIcon(_create_icon(ICON_ERROR))
            self.overlay.show_status(message, hide_after_ms=4000)
        elif state == RecoveryState.IDLE.value:
            self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip(f"Dictation: {message}")

    def _on_guidance_ui(self, guidance: ErrorGuidance) -> None:
        self.overlay.show_guidance(guidance)

    def _on_recording_ui(self, recording: bool) -> None:
        if recording:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.overlay.show_status("Listening...")
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.overlay.hide_with_delay(400)

    # ------------------------------------------------------------------
    # Dictation flow
    # ------------------------------------------------------------------

    def _on_hotkey_press(self) -> None:
        if self.orchestrator.is_recovering:
            return
        self.engine.clear_state()
        try:
            self.audio.start_capture()
        except Exception as exc:
            self._report(ErrorKind.AUDIO_CAPTURE_FAILURE, Component.AUDIO_SYSTEM, str(exc))
            return
        self.ui.recording_signal.emit(True)

    def _on_hotkey_release(self) -> None:
        if not self.audio.is_capturing():
            return
        self.audio.stop_capture()
        self.ui.recording_signal.emit(False)
        # Transcription blocks on the network; keep the listener thread free.
        threading.Thread(target=self._finish_dictation, daemon=True).start()

    def _finish_dictation(self) -> None:
        queue = self.audio.audio_queue
        while not queue.empty():
            self.engine.feed(queue.get_nowait())

        result = self.engine.transcribe()
        if result.error is not None:
            self._submit(
                self.orchestrator.handle_error(result.error, Component.TRANSCRIPTION_ENGINE)
            )
            return
        if not result.text:
            return

        pasted = self.paste_service.paste_text(result.text)
        if not pasted.success:
            self._report(ErrorKind.TEXT_INSERTION_FAILED, Component.TEXT_INSERTION, pasted.reason)

    def _report(self, kind: ErrorKind, component: Component, detail: str = "") -> None:
        self._submit(self.orchestrator.handle_error(AppError(kind, detail), component))

    def _submit(self, coro: Coroutine[Any, Any, Any]):
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _load_model(self) -> None:
        try:
            await asyncio.to_thread(self.engine.load_model, self.engine.current_model)
        except Exception as exc:
            await self.orchestrator.handle_error(
                AppError(ErrorKind.MODEL_LOAD_FAILED, str(exc)), Component.TRANSCRIPTION_ENGINE
            )

    async def _start_monitoring(self) -> None:
        self.orchestrator.start_health_monitoring()

    def run(self) -> int:
        self._loop_thread.start()
        self._submit(self._load_model())
        try:
            self.hotkey.start_listening()
        except Exception as exc:
            self._report(ErrorKind.HOTKEY_SYSTEM_ERROR, Component.HOTKEY_SYSTEM, str(exc))
        self._submit(self._start_monitoring())
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop_listening()
        self.audio.stop_capture()
        try:
            self._submit(self.orchestrator.shutdown()).result(timeout=1.0)
        except Exception:
            logger.exception("Recovery shutdown did not finish cleanly")
        self.loop.call_soon_threadsafe(self.loop.stop)
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
