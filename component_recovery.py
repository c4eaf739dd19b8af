"""Component-specific recovery actions with snapshot/rollback.

Every action talks to the collaborators only through the protocols in
``interfaces``. ``execute`` wraps an action in the snapshot protocol: capture
the component's observable flags, run the action, validate, and on failure or
cancellation restore the flags by issuing the inverse control operations.

Collaborator control calls may block (device streams, clipboard helpers,
model loading), so they run in a worker thread. Each one is an await the
orchestrator's timeout can interrupt.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from errors import (
    AudioRecoveryError,
    HotkeyRecoveryError,
    PermissionRecoveryError,
    TextInsertionRecoveryError,
    TranscriptionRecoveryError,
    ValidationFailedError,
)
from interfaces import Collaborators
from models import Component, ComponentSnapshot
from strategies import RecoveryStrategy, StrategyKind

logger = logging.getLogger("dictate-recovery")

ProgressCallback = Callable[[float], None]

FLAG_CAPTURING = "capturing"
FLAG_LISTENING = "listening"
FLAG_MODEL_LOADED = "model_loaded"
FLAG_AVAILABLE = "available"

FULL_RESET_ORDER = (
    Component.HOTKEY_SYSTEM,
    Component.AUDIO_SYSTEM,
    Component.TRANSCRIPTION_ENGINE,
    Component.TEXT_INSERTION,
)


class ComponentRecovery:
    def __init__(
        self,
        collaborators: Collaborators,
        settle_delay_s: float = 0.5,
        session_reset_delay_s: float = 0.1,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._c = collaborators
        self._settle_delay_s = settle_delay_s
        self._session_reset_delay_s = session_reset_delay_s
        self._clock = clock
        self._in_flight: dict[Component, ComponentSnapshot] = {}

    def in_flight_snapshot(self, component: Component) -> Optional[ComponentSnapshot]:
        return self._in_flight.get(component)

    # ------------------------------------------------------------------
    # Strategy execution
    # ------------------------------------------------------------------

    async def execute(
        self,
        strategy: RecoveryStrategy,
        component: Component,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Run ``strategy`` for a failure reported on ``component``.

        Raises whatever the action or validation raised, after rolling back.
        """
        kind = strategy.kind
        if kind == StrategyKind.USER_GUIDED_RECOVERY:
            raise ValidationFailedError("User guidance required")
        if kind == StrategyKind.GRACEFUL_DEGRADATION:
            logger.info("Accepting degraded operation for %s", component.display_name)
            return
        if kind == StrategyKind.FULL_SYSTEM_RESET:
            await self.perform_full_system_reset(on_progress)
            return

        target = strategy.component or _target_of(kind, component)
        snapshot = await self.capture_snapshot(target)
        self._in_flight[target] = snapshot
        try:
            await self._run_action(kind, target, snapshot)
            if on_progress:
                on_progress(0.5)
            await self.validate_component(target, expected=snapshot)
        except (Exception, asyncio.CancelledError) as exc:
            logger.warning(
                "Recovery of %s via %s did not hold (%s), rolling back",
                target.display_name,
                strategy,
                type(exc).__name__,
            )
            await self.rollback(snapshot)
            raise
        finally:
            self._in_flight.pop(target, None)

    async def _run_action(
        self,
        kind: StrategyKind,
        target: Component,
        snapshot: ComponentSnapshot,
    ) -> None:
        if kind == StrategyKind.REQUEST_PERMISSIONS:
            await self.recover_permissions()
        else:
            await self.reset_component(target, snapshot)

    # ------------------------------------------------------------------
    # Snapshot / rollback
    # ------------------------------------------------------------------

    async def capture_snapshot(self, component: Component) -> ComponentSnapshot:
        flags: dict[str, bool] = {}
        if component == Component.AUDIO_SYSTEM:
            flags[FLAG_CAPTURING] = self._c.audio.is_capturing()
        elif component == Component.HOTKEY_SYSTEM:
            flags[FLAG_LISTENING] = self._c.hotkey.is_listening()
        elif component == Component.TRANSCRIPTION_ENGINE:
            flags[FLAG_MODEL_LOADED] = self._c.transcription.is_model_loaded()
        elif component == Component.TEXT_INSERTION:
            flags[FLAG_AVAILABLE] = await asyncio.to_thread(self._c.text_insertion.is_available)
        return ComponentSnapshot(component=component, flags=flags, captured_at=self._clock())

    async def rollback(self, snapshot: ComponentSnapshot) -> None:
        """Best-effort restore of ``snapshot``; failures are logged, never raised."""
        for flag, was_set in snapshot.flags.items():
            try:
                await self._restore_flag(flag, was_set)
            except Exception:
                logger.exception(
                    "Rollback of %s flag %r failed", snapshot.component.display_name, flag
                )

    async def _restore_flag(self, flag: str, was_set: bool) -> None:
        if flag == FLAG_CAPTURING:
            audio = self._c.audio
            now = audio.is_capturing()
            if was_set and not now:
                await asyncio.to_thread(audio.start_capture)
            elif not was_set and now:
                await asyncio.to_thread(audio.stop_capture)
        elif flag == FLAG_LISTENING:
            hotkey = self._c.hotkey
            now = hotkey.is_listening()
            if was_set and not now:
                await asyncio.to_thread(hotkey.start_listening)
            elif not was_set and now:
                await asyncio.to_thread(hotkey.stop_listening)
        elif flag == FLAG_MODEL_LOADED:
            engine = self._c.transcription
            if was_set and not engine.is_model_loaded():
                await asyncio.to_thread(engine.load_model, engine.current_model)
        else:
            # No control operation exists for text insertion availability.
            logger.debug("Flag %r has no inverse operation", flag)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def recover_permissions(self) -> None:
        logger.info("Starting permission recovery")
        # May block on an OS prompt.
        granted = await asyncio.to_thread(self._c.audio.request_permission)
        if not granted:
            raise PermissionRecoveryError("Microphone permission denied")
        # Accessibility can only be checked, not requested.
        if not self._c.permissions.check_accessibility_permission():
            raise PermissionRecoveryError(
                "Accessibility permission required - please grant it in System Settings"
            )
        logger.info("Permission recovery completed")

    async def reset_audio_system(self, resume_capture: bool) -> None:
        logger.info("Starting audio system recovery")
        audio = self._c.audio
        if audio.is_capturing():
            await asyncio.to_thread(audio.stop_capture)
            await asyncio.sleep(self._settle_delay_s)

        await asyncio.sleep(self._session_reset_delay_s)

        if resume_capture:
            try:
                await asyncio.to_thread(audio.start_capture)
            except Exception as exc:
                raise AudioRecoveryError(f"Audio engine failed to restart: {exc}") from exc

        if audio.is_capturing() != resume_capture:
            if resume_capture:
                raise AudioRecoveryError("Audio engine failed to start capturing")
            raise AudioRecoveryError("Audio engine kept capturing after reset")
        logger.info("Audio system recovery completed")

    async def restart_transcription_engine(self) -> None:
        logger.info("Starting transcription engine recovery")
        engine = self._c.transcription
        await asyncio.to_thread(engine.clear_state)
        model = engine.current_model
        try:
            await asyncio.to_thread(engine.load_model, model)
        except Exception as exc:
            raise TranscriptionRecoveryError(f"Model {model!r} failed to load: {exc}") from exc
        if not engine.is_model_loaded():
            raise TranscriptionRecoveryError("Model failed to load")
        logger.info("Transcription engine recovery completed")

    async def retry_text_insertion(self) -> None:
        logger.info("Starting text insertion recovery")
        if not self._c.permissions.check_accessibility_permission():
            raise TextInsertionRecoveryError("Accessibility permission required")
        if not await asyncio.to_thread(self._c.text_insertion.is_available):
            raise TextInsertionRecoveryError("Text insertion engine unavailable")
        logger.info("Text insertion recovery completed")

    async def reset_hotkey_system(self) -> None:
        hotkey = self._c.hotkey
        await asyncio.to_thread(hotkey.stop_listening)
        await asyncio.sleep(self._settle_delay_s)
        try:
            await asyncio.to_thread(hotkey.start_listening)
        except Exception as exc:
            raise HotkeyRecoveryError(f"Failed to restart hotkey system: {exc}") from exc
        if not hotkey.is_listening():
            raise HotkeyRecoveryError("Failed to restart hotkey system")

    async def reset_component(
        self,
        component: Component,
        snapshot: Optional[ComponentSnapshot] = None,
    ) -> None:
        logger.info("Resetting component: %s", component.display_name)
        if component == Component.HOTKEY_SYSTEM:
            await self.reset_hotkey_system()
        elif component == Component.AUDIO_SYSTEM:
            if snapshot is None:
                snapshot = await self.capture_snapshot(component)
            await self.reset_audio_system(snapshot.flags[FLAG_CAPTURING])
        elif component == Component.TRANSCRIPTION_ENGINE:
            await self.restart_transcription_engine()
        elif component == Component.TEXT_INSERTION:
            await self.retry_text_insertion()
        else:
            logger.info("System resources have no reset mechanism")

    async def perform_full_system_reset(
        self,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Reset every component in a fixed order, then validate them all.

        When a step fails or is cancelled, only that component is rolled
        back. Earlier resets are kept.
        """
        logger.warning("Performing full system reset")
        expected: dict[Component, ComponentSnapshot] = {}
        steps = len(FULL_RESET_ORDER) + 1
        for index, component in enumerate(FULL_RESET_ORDER, start=1):
            snapshot = await self.capture_snapshot(component)
            expected[component] = snapshot
            self._in_flight[component] = snapshot
            try:
                await self.reset_component(component, snapshot)
            except (Exception, asyncio.CancelledError) as exc:
                logger.warning(
                    "Full reset stopped at %s (%s), rolling it back",
                    component.display_name,
                    type(exc).__name__,
                )
                await self.rollback(snapshot)
                raise
            finally:
                self._in_flight.pop(component, None)
            if on_progress:
                on_progress(index / steps)

        for component in FULL_RESET_ORDER:
            await self.validate_component(component, expected=expected[component])
        logger.info("Full system reset completed")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    async def validate_component(
        self,
        component: Component,
        expected: Optional[ComponentSnapshot] = None,
    ) -> None:
        """Check ``component`` without touching its state.

        Audio capture is demand driven, so the audio system is only held to
        the capture flag of ``expected`` when one is given.
        """
        if component == Component.HOTKEY_SYSTEM:
            if not self._c.hotkey.is_listening():
                raise ValidationFailedError("Hotkey system not responding")
        elif component == Component.AUDIO_SYSTEM:
            if expected is not None and FLAG_CAPTURING in expected.flags:
                if self._c.audio.is_capturing() != expected.flags[FLAG_CAPTURING]:
                    raise ValidationFailedError("Audio capture state does not match")
        elif component == Component.TRANSCRIPTION_ENGINE:
            if not self._c.transcription.is_model_loaded():
                raise ValidationFailedError("Transcription model not loaded")
        elif component == Component.TEXT_INSERTION:
            if not await asyncio.to_thread(self._c.text_insertion.is_available):
                raise ValidationFailedError("Text insertion not available")
        logger.debug("Component validation successful: %s", component.display_name)


def _target_of(kind: StrategyKind, component: Component) -> Component:
    if kind == StrategyKind.RESET_AUDIO_SYSTEM:
        return Component.AUDIO_SYSTEM
    if kind == StrategyKind.RESTART_TRANSCRIPTION_ENGINE:
        return Component.TRANSCRIPTION_ENGINE
    if kind == StrategyKind.RETRY_TEXT_INSERTION:
        return Component.TEXT_INSERTION
    return component
