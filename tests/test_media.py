"""Tests for SoundDeviceMediaAcquirer."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from errors import ConstraintUnsupportedError, DeviceUnavailableError
from media import SoundDeviceMediaAcquirer, _device_arg
from models import MediaRequest, Orientation, VideoConstraints


class _FakePortAudioError(Exception):
    pass


def _mock_sd(mock_sd: MagicMock) -> MagicMock:
    mock_sd.PortAudioError = _FakePortAudioError
    stream = MagicMock()
    mock_sd.InputStream.return_value = stream
    return stream


def _tone(bin_index: int, size: int = 256, length: int = 960) -> np.ndarray:
    n = np.arange(length)
    return (0.5 * np.sin(2.0 * np.pi * bin_index * n / size)).astype(np.float32).reshape(-1, 1)


# ---------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------

@patch("media.sd")
def test_acquire_opens_and_starts_stream(mock_sd: MagicMock) -> None:
    stream = _mock_sd(mock_sd)

    acquirer = SoundDeviceMediaAcquirer(sample_rate=48000, chunk_ms=20)
    handle = acquirer.acquire(MediaRequest(device_id="2", orientation=Orientation.PORTRAIT))

    mock_sd.InputStream.assert_called_once()
    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["device"] == 2
    assert kwargs["blocksize"] == 960
    assert kwargs["channels"] == 1
    stream.start.assert_called_once()
    assert handle.device_id == "2"
    assert handle.video_constraints == VideoConstraints(720, 1280, 9 / 16)
    assert handle.released is False


@patch("media.sd")
def test_release_is_idempotent(mock_sd: MagicMock) -> None:
    stream = _mock_sd(mock_sd)
    handle = SoundDeviceMediaAcquirer().acquire(MediaRequest())

    handle.release()
    handle.release()

    assert handle.released is True
    stream.stop.assert_called_once()
    stream.close.assert_called_once()


@patch("media.sd")
def test_release_survives_stream_errors(mock_sd: MagicMock) -> None:
    stream = _mock_sd(mock_sd)
    stream.stop.side_effect = _FakePortAudioError("device gone")
    handle = SoundDeviceMediaAcquirer().acquire(MediaRequest())

    handle.release()

    assert handle.released is True


@patch("media.sd")
def test_missing_device_is_unavailable(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    mock_sd.query_devices.side_effect = ValueError("No input device matching 'usb'")

    with pytest.raises(DeviceUnavailableError):
        SoundDeviceMediaAcquirer().acquire(MediaRequest(device_id="usb"))
    mock_sd.InputStream.assert_not_called()


@patch("media.sd")
def test_rejected_settings_are_constraint_errors(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    mock_sd.check_input_settings.side_effect = ValueError("Invalid sample rate")

    with pytest.raises(ConstraintUnsupportedError):
        SoundDeviceMediaAcquirer(sample_rate=96000).acquire(MediaRequest())
    mock_sd.InputStream.assert_not_called()


@patch("media.sd")
def test_stream_open_failure_is_unavailable(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    mock_sd.InputStream.side_effect = _FakePortAudioError("Device unavailable")

    with pytest.raises(DeviceUnavailableError):
        SoundDeviceMediaAcquirer().acquire(MediaRequest())


@patch("media.sd")
def test_stream_start_failure_closes_stream(mock_sd: MagicMock) -> None:
    stream = _mock_sd(mock_sd)
    stream.start.side_effect = _FakePortAudioError("Device busy")

    with pytest.raises(DeviceUnavailableError):
        SoundDeviceMediaAcquirer().acquire(MediaRequest())

    stream.stop.assert_called_once()
    stream.close.assert_called_once()


@patch("media.sd")
def test_audio_disabled_is_constraint_error(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)

    with pytest.raises(ConstraintUnsupportedError):
        SoundDeviceMediaAcquirer().acquire(MediaRequest(audio=False))


def test_acquire_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import media as media_mod
    monkeypatch.setattr(media_mod, "sd", None)

    with pytest.raises(DeviceUnavailableError, match="sounddevice is not installed"):
        SoundDeviceMediaAcquirer().acquire(MediaRequest())


# ---------------------------------------------------------------
# Audio callback feeds the analyser
# ---------------------------------------------------------------

@patch("media.sd")
def test_callback_feeds_analyser(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    handle = SoundDeviceMediaAcquirer().acquire(MediaRequest())
    assert int(handle.audio.frequency_data().max()) == 0

    handle._on_audio(_tone(16), frames=960, time_info=None, status=None)

    assert int(handle.audio.frequency_data()[16]) > 0


@patch("media.sd")
def test_callback_after_release_is_noop(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    handle = SoundDeviceMediaAcquirer().acquire(MediaRequest())
    handle.release()

    handle._on_audio(_tone(16), frames=960, time_info=None, status=None)

    assert int(handle.audio.frequency_data().max()) == 0


@patch("media.sd")
def test_callback_counts_status_flags(mock_sd: MagicMock) -> None:
    _mock_sd(mock_sd)
    handle = SoundDeviceMediaAcquirer().acquire(MediaRequest())

    handle._on_audio(_tone(16), frames=960, time_info=None, status="input overflow")

    assert handle.status_flags == 1


def test_device_arg() -> None:
    assert _device_arg(None) is None
    assert _device_arg("") is None
    assert _device_arg("3") == 3
    assert _device_arg("USB Audio") == "USB Audio"
