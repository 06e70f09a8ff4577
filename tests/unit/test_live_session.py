from __future__ import annotations

import time

import pytest

from support import FakeCameraRepository, FakeConfidenceService, FakeDetector, FakeDetectorFactory, glass, wait_for
from volume_vision.application.live_session import CAMERA_DENIED, NOTICE_TOPIC
from volume_vision.domain.camera.camera import FacingMode
from volume_vision.domain.session.state import PermissionStatus
from volume_vision.domain.volume.estimation import Unit
from volume_vision.shared.validation import ValidationError


def test_simulated_level_drives_volume_without_detections(session_factory) -> None:
    parts = session_factory(detector=FakeDetector())
    session = parts.session
    session.start()

    session.set_simulated_level(30)
    snapshot = session.snapshot()

    assert snapshot.is_simulating
    assert snapshot.liquid_level == 30.0
    assert snapshot.volume_ml == pytest.approx(105.0)
    assert snapshot.confidence is None
    assert snapshot.analysis_message == "Point the camera at a glass."


def test_detected_glass_drives_level_and_confidence(session_factory) -> None:
    parts = session_factory(detector=FakeDetector([glass()]))
    session = parts.session
    session.start()

    assert wait_for(lambda: session.snapshot().detections)
    assert wait_for(lambda: session.snapshot().confidence is not None)
    session.set_unit("oz")
    snapshot = session.snapshot()

    assert snapshot.liquid_level == pytest.approx(50.0)
    assert snapshot.volume_ml == pytest.approx(175.0)
    assert snapshot.display_volume == pytest.approx(5.91745, abs=1e-4)
    assert snapshot.unit is Unit.OZ
    assert snapshot.confidence_band == "high"
    assert snapshot.analysis_message.startswith("Level is consistent.")


def test_slider_takes_over_once_detections_vanish(session_factory) -> None:
    detector = FakeDetector([glass()])
    parts = session_factory(detector=detector, initial_level=20.0)
    session = parts.session
    session.start()
    assert wait_for(lambda: session.snapshot().detections)

    detector.detections = ()

    assert wait_for(lambda: not session.snapshot().detections)
    assert session.snapshot().liquid_level == 20.0
    assert wait_for(lambda: session.snapshot().confidence is None)


def test_facing_mode_switch_closes_old_stream_first(session_factory) -> None:
    camera = FakeCameraRepository()
    parts = session_factory(camera=camera)
    session = parts.session
    session.start()

    session.set_facing_mode("user")

    assert camera.events == ["open:environment", "close:environment", "open:user"]
    assert camera.streams[0].close_calls == 1
    assert camera.streams[1].close_calls == 0
    assert session.snapshot().facing_mode is FacingMode.USER
    assert session.capture_frame() is not None


def test_same_facing_mode_does_not_reopen(session_factory) -> None:
    camera = FakeCameraRepository()
    parts = session_factory(camera=camera)
    parts.session.start()

    parts.session.set_facing_mode(FacingMode.ENVIRONMENT)

    assert camera.events == ["open:environment"]


def test_denied_permission_keeps_poller_inert(bus, session_factory) -> None:
    notices = []
    bus.subscribe(NOTICE_TOPIC, notices.append)
    detector = FakeDetector([glass()])
    camera = FakeCameraRepository(deny=[FacingMode.ENVIRONMENT])
    parts = session_factory(detector=detector, camera=camera)
    session = parts.session

    session.start()
    time.sleep(0.1)
    snapshot = session.snapshot()

    assert snapshot.permission_status is PermissionStatus.DENIED
    assert snapshot.alert == CAMERA_DENIED
    assert snapshot.alert.persistent
    assert not snapshot.polling
    assert detector.calls == 0
    assert snapshot.analysis_message == "Camera not available."
    assert CAMERA_DENIED in notices
    assert session.capture_frame() is None


def test_retry_after_grant_resumes_polling(session_factory) -> None:
    detector = FakeDetector([glass()])
    camera = FakeCameraRepository(deny=[FacingMode.ENVIRONMENT])
    parts = session_factory(detector=detector, camera=camera)
    session = parts.session
    session.start()

    camera.deny.clear()
    session.retry_permission()

    snapshot = session.snapshot()
    assert snapshot.permission_status is PermissionStatus.GRANTED
    assert snapshot.alert is None
    assert snapshot.polling
    assert wait_for(lambda: detector.calls > 0)


def test_revoked_permission_stops_polling(session_factory) -> None:
    detector = FakeDetector([glass()])
    parts = session_factory(detector=detector)
    session = parts.session
    session.start()
    assert wait_for(lambda: session.snapshot().detections)

    session.report_permission(False)

    snapshot = session.snapshot()
    assert not snapshot.polling
    assert snapshot.detections == ()
    assert snapshot.alert == CAMERA_DENIED


def test_disabling_detection_clears_state(session_factory) -> None:
    detector = FakeDetector([glass()])
    parts = session_factory(detector=detector)
    session = parts.session
    session.start()
    assert wait_for(lambda: session.snapshot().confidence is not None)

    session.set_detection_enabled(False)
    calls = detector.calls
    time.sleep(0.1)
    snapshot = session.snapshot()

    assert not snapshot.polling
    assert snapshot.detections == ()
    assert snapshot.confidence is None
    assert snapshot.analysis_message == "Enable detection to see AI analysis."
    assert detector.calls <= calls + 1

    session.set_detection_enabled(True)
    assert wait_for(lambda: session.snapshot().detections)


def test_model_load_failure_is_reported_once(session_factory) -> None:
    factory = FakeDetectorFactory(unavailable=True)
    parts = session_factory(detector_factory=factory)
    session = parts.session

    session.start()
    snapshot = session.snapshot()

    assert not snapshot.model_ready
    assert not snapshot.polling
    assert [notice.title for notice in snapshot.notices] == ["Model Load Error"]
    assert factory.created == 1


def test_detection_error_raises_notice_and_keeps_polling(session_factory) -> None:
    detector = FakeDetector(error=RuntimeError("boom"))
    parts = session_factory(detector=detector)
    session = parts.session
    session.start()

    assert wait_for(lambda: any(n.title == "Local AI Error" for n in session.snapshot().notices))
    assert wait_for(lambda: detector.calls >= 2)
    assert session.snapshot().detections == ()
    assert session.snapshot().polling


def test_confidence_failure_is_silent(session_factory) -> None:
    confidence = FakeConfidenceService(error=RuntimeError("offline"))
    parts = session_factory(detector=FakeDetector([glass()]), confidence=confidence)
    session = parts.session
    session.start()

    assert wait_for(lambda: bool(confidence.requests))
    time.sleep(0.05)
    snapshot = session.snapshot()

    assert snapshot.confidence is None
    assert all(notice.level != "error" for notice in snapshot.notices)


def test_invalid_input_is_rejected(session_factory) -> None:
    session = session_factory().session

    with pytest.raises(ValidationError):
        session.set_simulated_level(101)
    with pytest.raises(ValidationError):
        session.set_unit("cups")
    with pytest.raises(ValidationError):
        session.set_facing_mode("sideways")


def test_stop_releases_camera_and_resets_state(session_factory) -> None:
    camera = FakeCameraRepository()
    parts = session_factory(camera=camera, detector=FakeDetector([glass()]))
    session = parts.session
    session.start()
    session.set_unit(Unit.OZ)
    assert wait_for(lambda: session.snapshot().detections)

    session.stop()
    snapshot = session.snapshot()

    assert camera.streams[0].close_calls == 1
    assert snapshot.unit is Unit.ML
    assert snapshot.detections == ()
    assert snapshot.permission_status is PermissionStatus.UNKNOWN
    assert not snapshot.polling
    assert not session.started
