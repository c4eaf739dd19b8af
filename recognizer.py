"""Transcription engine adapter using DashScope qwen3-asr-flash.

The model accepts complete audio, so PCM frames are buffered with ``feed``
and sent as a base64 WAV by ``transcribe``. "Loading" a hosted model means
binding the model id and credentials; an authentication failure unloads it
again so health checks and recovery see the engine as unusable.
"""

from __future__ import annotations

import base64
import io
import os
import threading
import wave

from errors import AppError, ErrorKind
from models import AudioFrame, TranscriptionResult

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class DashscopeTranscriptionEngine:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s
        self._loaded = False
        self._pcm = bytearray()
        self._sample_rate = 16000
        self._channels = 1
        self._lock = threading.Lock()

    @property
    def current_model(self) -> str:
        return self._model

    def is_model_loaded(self) -> bool:
        return self._loaded

    def load_model(self, model_id: str) -> None:
        self._loaded = False
        if dashscope is None:
            raise RuntimeError("dashscope is not installed")
        if not self._resolve_api_key():
            raise RuntimeError("No API key configured")
        self._model = model_id
        self._loaded = True

    def clear_state(self) -> None:
        with self._lock:
            self._pcm.clear()

    def feed(self, frame: AudioFrame) -> None:
        with self._lock:
            self._pcm.extend(frame.pcm16_bytes)
            self._sample_rate = frame.sample_rate
            self._channels = frame.channels

    def transcribe(self) -> TranscriptionResult:
        """Recognise everything fed since the last call and clear the buffer."""
        with self._lock:
            pcm = bytes(self._pcm)
            sample_rate, channels = self._sample_rate, self._channels
            self._pcm.clear()

        if not self._loaded:
            return TranscriptionResult(
                error=AppError(ErrorKind.MODEL_LOAD_FAILED, f"{self._model} is not loaded")
            )
        if not pcm:
            return TranscriptionResult(text="")

        try:
            response = dashscope.MultiModalConversation.call(
                api_key=self._resolve_api_key(),
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {
                        "role": "user",
                        "content": [{"audio": _pcm_to_wav_base64(pcm, sample_rate, channels)}],
                    },
                ],
                result_format="message",
                asr_options={"enable_itn": False},
                stream=True,
                timeout=self._request_timeout_s,
            )
            latest_text = ""
            for chunk in response:
                text = self._extract_text(chunk)
                if text:
                    latest_text = text
        except Exception as exc:
            return TranscriptionResult(error=self._to_app_error(exc))
        return TranscriptionResult(text=latest_text)

    def _resolve_api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if isinstance(chunk, dict):
            output = chunk.get("output", {})
            choices = output.get("choices", [])
            if not choices:
                return ""
            message = choices[0].get("message", {})
            content = message.get("content", [])
            if not content:
                return ""
            value = content[0]
            if isinstance(value, dict):
                return str(value.get("text", ""))
        return ""

    def _to_app_error(self, exc: Exception) -> AppError:
        """Map an SDK/network exception onto the error taxonomy."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            self._loaded = False
            return AppError(ErrorKind.MODEL_LOAD_FAILED, message)
        if "timeout" in low or "network" in low or "connection" in low:
            return AppError(ErrorKind.NETWORK_CONNECTION_FAILED, message)
        return AppError(ErrorKind.TRANSCRIPTION_FAILED, message)
