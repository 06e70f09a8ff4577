from __future__ import annotations

from types import SimpleNamespace

import pytest

from support import FakeCameraRepository, FakeConfidenceService, FakeDetector, FakeDetectorFactory
from volume_vision.application.live_session import LiveSession
from volume_vision.application.poll_detections import DetectionPoller
from volume_vision.application.request_confidence import ConfidenceRequester
from volume_vision.crosscutting.logging_setup import get_logger
from volume_vision.domain.settings.settings import PipelineSettings
from volume_vision.shared.bus import EventBus


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def logger():
    return get_logger("tests")


@pytest.fixture
def session_factory(bus, logger):
    created: list[LiveSession] = []

    def factory(
        *,
        detector: FakeDetector | None = None,
        camera: FakeCameraRepository | None = None,
        confidence: FakeConfidenceService | None = None,
        detector_factory: FakeDetectorFactory | None = None,
        **overrides,
    ) -> SimpleNamespace:
        overrides.setdefault("poll_interval", 0.02)
        overrides.setdefault("confidence_debounce", 0.0)
        settings = PipelineSettings(**overrides)
        camera = camera or FakeCameraRepository()
        detector_factory = detector_factory or FakeDetectorFactory(detector or FakeDetector())
        confidence = confidence or FakeConfidenceService()
        poller = DetectionPoller(
            bus,
            logger,
            accepted_labels=settings.accepted_labels,
            score_threshold=settings.score_threshold,
            interval=settings.poll_interval,
        )
        requester = ConfidenceRequester(
            confidence,
            bus,
            logger,
            glass_shape=settings.glass_shape,
            debounce=settings.confidence_debounce,
        )
        session = LiveSession(settings, camera, detector_factory, poller, requester, bus, logger)
        created.append(session)
        return SimpleNamespace(
            session=session,
            settings=settings,
            camera=camera,
            detector=detector_factory.detector,
            detector_factory=detector_factory,
            confidence=confidence,
            poller=poller,
            requester=requester,
        )

    yield factory
    for session in created:
        session.stop()
