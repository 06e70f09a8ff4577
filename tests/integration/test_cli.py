from __future__ import annotations

import pytest
from dependency_injector import providers

from support import FakeCameraRepository, FakeConfidenceService, FakeDetector, FakeDetectorFactory, glass
from volume_vision.app import main as cli
from volume_vision.app.container import ApplicationContainer
from volume_vision.app.main import _overrides, build_parser


def test_flags_map_to_settings_overrides() -> None:
    args = build_parser().parse_args(
        ["--unit", "oz", "--facing-mode", "user", "--level", "30", "--no-detection", "--detector", "openai", "--interval", "0.5"]
    )

    assert _overrides(args) == {
        "initial_unit": "oz",
        "initial_facing_mode": "user",
        "initial_level": 30.0,
        "detection_enabled": False,
        "detector_backend": "openai",
        "poll_interval": 0.5,
    }


def test_no_flags_keep_configured_values() -> None:
    assert _overrides(build_parser().parse_args([])) == {}


def test_level_outside_range_is_rejected() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--level", "120"])


def test_main_prints_status_and_releases_camera(monkeypatch, capsys) -> None:
    camera = FakeCameraRepository()
    container = ApplicationContainer()
    container.camera_repository.override(providers.Object(camera))
    container.detector_factory.override(providers.Object(FakeDetectorFactory(FakeDetector([glass()]))))
    container.confidence_service.override(providers.Object(FakeConfidenceService()))
    monkeypatch.setattr(cli, "ApplicationContainer", lambda: container)

    code = cli.main(["--unit", "oz", "--level", "40", "--interval", "0.02", "--duration", "0.3"])

    assert code == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("level=")]
    assert lines
    assert all(" oz " in line for line in lines)
    assert camera.streams and camera.streams[0].close_calls == 1
    assert container.event_bus().subscriber_count("session.notice") == 0
