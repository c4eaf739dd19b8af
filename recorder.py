"""Microphone audio system adapter."""

from __future__ import annotations

import threading
import time
from queue import Full, Queue
from typing import Any, Optional

from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore


class SoundDeviceAudioSystem:
    """Captures int16 PCM frames from the default input device into a queue."""

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        audio_queue: Optional[Queue[AudioFrame]] = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.audio_queue: Queue[AudioFrame] = audio_queue or Queue(maxsize=50)
        self.dropped_chunks = 0
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()

    def is_capturing(self) -> bool:
        with self._lock:
            return self._running

    def start_capture(self) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True

    def stop_capture(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()

    def request_permission(self) -> bool:
        """Open and close an input stream; the OS prompts on first access."""
        if sd is None:
            return False
        try:
            sd.query_devices(kind="input")
            probe = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
            )
            probe.close()
        except Exception:
            return False
        return True

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        frame = AudioFrame(
            pcm16_bytes=payload,
            sample_rate=self.sample_rate,
            channels=self.channels,
            timestamp_ms=int(time.time() * 1000),
        )
        try:
            self.audio_queue.put_nowait(frame)
        except Full:
            self.dropped_chunks += 1
