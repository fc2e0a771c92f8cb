from __future__ import annotations

from unittest.mock import MagicMock, patch

from devices import DeviceInfo, choose_device, list_input_devices


class _FakePortAudioError(Exception):
    pass


@patch("devices.sd")
def test_lists_only_input_devices(mock_sd: MagicMock) -> None:
    mock_sd.PortAudioError = _FakePortAudioError
    mock_sd.query_devices.return_value = [
        {"name": "Built-in Microphone", "max_input_channels": 2},
        {"name": "Speakers", "max_input_channels": 0},
        {"name": "", "max_input_channels": 1},
    ]

    devices = list_input_devices()

    assert devices == [
        DeviceInfo(device_id="0", label="Built-in Microphone"),
        DeviceInfo(device_id="2", label="Microphone 2"),
    ]


@patch("devices.sd")
def test_enumeration_failure_returns_empty(mock_sd: MagicMock) -> None:
    mock_sd.PortAudioError = _FakePortAudioError
    mock_sd.query_devices.side_effect = _FakePortAudioError("host API error")

    assert list_input_devices() == []


def test_enumeration_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import devices as devices_mod
    monkeypatch.setattr(devices_mod, "sd", None)

    assert list_input_devices() == []


def test_choose_device_keeps_existing_selection() -> None:
    devices = [DeviceInfo("0", "A"), DeviceInfo("3", "B")]
    assert choose_device(devices, "3") == "3"


def test_choose_device_falls_back_to_first() -> None:
    devices = [DeviceInfo("0", "A"), DeviceInfo("3", "B")]
    assert choose_device(devices, "7") == "0"
    assert choose_device(devices, "") == "0"
    assert choose_device([], "3") is None
