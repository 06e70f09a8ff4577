"""Composition root wiring settings, adapters and the live session."""

from __future__ import annotations

from dependency_injector import containers, providers

from ..application.live_session import LiveSession
from ..application.poll_detections import DetectionPoller
from ..application.request_confidence import ConfidenceRequester
from ..crosscutting.config import AppSettings, load_settings
from ..crosscutting.logging_setup import get_logger, setup_logging
from ..infrastructure.openai_confidence import OpenAiConfidenceService
from ..infrastructure.openai_detector import OpenAiDetectorFactory
from ..infrastructure.opencv_camera import OpenCvCameraRepository
from ..infrastructure.yolo_detector import YoloDetectorFactory
from ..shared.bus import EventBus


def _pipeline(settings: AppSettings):
    return settings.pipeline()


def _camera_indices(settings: AppSettings):
    return settings.camera_indices()


class ApplicationContainer(containers.DeclarativeContainer):
    settings = providers.Singleton(load_settings)
    pipeline_settings = providers.Singleton(_pipeline, settings)

    #region Extras
    logging = providers.Resource(setup_logging, level=settings.provided.log_level)
    logger = providers.Singleton(get_logger, "volume_vision")
    event_bus = providers.Singleton(EventBus)
    #endregion

    #region Infrastructure
    camera_repository = providers.Singleton(
        OpenCvCameraRepository,
        logger=logger,
        camera_indices=providers.Callable(_camera_indices, settings),
    )
    detector_factory = providers.Selector(
        settings.provided.detector_backend,
        yolo=providers.Singleton(YoloDetectorFactory, logger=logger),
        openai=providers.Singleton(
            OpenAiDetectorFactory,
            logger=logger,
            api_key=settings.provided.openai_api_key,
            timeout=settings.provided.openai_timeout,
        ),
    )
    confidence_service = providers.Singleton(
        OpenAiConfidenceService,
        logger=logger,
        model=settings.provided.openai_model,
        api_key=settings.provided.openai_api_key,
        timeout=settings.provided.openai_timeout,
    )
    #endregion

    #region Application
    detection_poller = providers.Singleton(
        DetectionPoller,
        bus=event_bus,
        logger=logger,
        accepted_labels=pipeline_settings.provided.accepted_labels,
        score_threshold=pipeline_settings.provided.score_threshold,
        interval=pipeline_settings.provided.poll_interval,
    )
    confidence_requester = providers.Singleton(
        ConfidenceRequester,
        service=confidence_service,
        bus=event_bus,
        logger=logger,
        glass_shape=pipeline_settings.provided.glass_shape,
        debounce=pipeline_settings.provided.confidence_debounce,
    )
    live_session = providers.Singleton(
        LiveSession,
        settings=pipeline_settings,
        camera_repository=camera_repository,
        detector_factory=detector_factory,
        poller=detection_poller,
        requester=confidence_requester,
        bus=event_bus,
        logger=logger,
    )
    #endregion


__all__ = ["ApplicationContainer"]
