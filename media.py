"""Microphone acquisition adapter feeding the spectrum analyser."""

from __future__ import annotations

import threading
from typing import Any, Optional, Union

import numpy as np
import structlog

from analyser import SpectrumAnalyser
from config import FFT_SIZE
from errors import ConstraintUnsupportedError, DeviceUnavailableError
from models import MediaRequest

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = structlog.get_logger()


def _device_arg(device_id: Optional[str]) -> Union[int, str, None]:
    if not device_id:
        return None
    return int(device_id) if device_id.isdigit() else device_id


class SoundDeviceMediaHandle:
    def __init__(self, analyser: SpectrumAnalyser, request: MediaRequest) -> None:
        self.audio = analyser
        self.device_id = request.device_id
        self.orientation = request.orientation
        self.video_constraints = request.video_constraints
        self.status_flags = 0
        self._stream: Any = None
        self._released = False
        self._lock = threading.Lock()

    @property
    def released(self) -> bool:
        return self._released

    def attach_stream(self, stream: Any) -> None:
        self._stream = stream

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            stream, self._stream = self._stream, None
        if stream is not None:
            try:
                stream.stop()
                stream.close()
            except Exception as exc:
                logger.warning("audio_stream_close_failed", device_id=self.device_id, error=str(exc))
        self.audio.reset()
        logger.info("media_released", device_id=self.device_id)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if self._released:
            return
        if status:
            self.status_flags += 1
        data = np.asarray(indata, dtype=np.float32)
        if data.ndim == 2:
            data = data[:, 0]
        self.audio.feed(data)


class SoundDeviceMediaAcquirer:
    def __init__(
        self,
        sample_rate: int = 48000,
        chunk_ms: int = 20,
        fft_size: int = FFT_SIZE,
    ) -> None:
        self.sample_rate = sample_rate
        self.chunk_ms = chunk_ms
        self.fft_size = fft_size

    def acquire(self, request: MediaRequest) -> SoundDeviceMediaHandle:
        if sd is None:
            raise DeviceUnavailableError("sounddevice is not installed")
        if not request.audio:
            raise ConstraintUnsupportedError("audio input is required for silence detection")
        device = _device_arg(request.device_id)

        try:
            sd.query_devices(device, kind="input")
        except (ValueError, sd.PortAudioError) as exc:
            raise DeviceUnavailableError(f"no input device available: {exc}") from exc

        try:
            sd.check_input_settings(
                device=device,
                channels=1,
                dtype="float32",
                samplerate=self.sample_rate,
            )
        except (ValueError, sd.PortAudioError) as exc:
            raise ConstraintUnsupportedError(f"input settings rejected: {exc}") from exc

        handle = SoundDeviceMediaHandle(SpectrumAnalyser(self.fft_size), request)
        blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
        try:
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                blocksize=blocksize,
                device=device,
                callback=handle._on_audio,
            )
            handle.attach_stream(stream)
            stream.start()
        except (sd.PortAudioError, OSError) as exc:
            handle.release()
            raise DeviceUnavailableError(f"could not open input stream: {exc}") from exc

        logger.info(
            "media_acquired",
            device_id=request.device_id,
            orientation=request.orientation.value,
            sample_rate=self.sample_rate,
        )
        return handle
