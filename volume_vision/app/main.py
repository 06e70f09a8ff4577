"""Console entry point running a live volume estimation session."""

from __future__ import annotations

import argparse
import time
from typing import Sequence

import cv2
from dependency_injector import providers

from ..application.live_session import NOTICE_TOPIC
from ..crosscutting.config import load_settings
from ..domain.camera.camera import FacingMode
from ..domain.events import Notice
from ..domain.volume.estimation import Unit
from ..presentation.overlay import render_overlay
from ..shared.validation import ValidationError, parse_percentage
from .container import ApplicationContainer

PREVIEW_WINDOW = "Volume Vision"


def _level(value: str) -> float:
    try:
        return parse_percentage(value)
    except ValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Estimate the liquid volume of a glass seen by the camera")
    parser.add_argument("--unit", choices=[unit.value for unit in Unit], default=None)
    parser.add_argument("--facing-mode", choices=[mode.value for mode in FacingMode], default=None)
    parser.add_argument("--level", type=_level, default=None, help="Simulated liquid level (0-100).")
    parser.add_argument("--no-detection", action="store_true", help="Start with detection paused.")
    parser.add_argument("--detector", choices=("yolo", "openai"), default=None)
    parser.add_argument("--model-path", default=None)
    parser.add_argument("--interval", type=float, default=None, help="Seconds between detection polls.")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds.")
    parser.add_argument("--preview", action="store_true", help="Show an annotated camera window.")
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.unit is not None:
        overrides["initial_unit"] = args.unit
    if args.facing_mode is not None:
        overrides["initial_facing_mode"] = args.facing_mode
    if args.level is not None:
        overrides["initial_level"] = args.level
    if args.no_detection:
        overrides["detection_enabled"] = False
    if args.detector is not None:
        overrides["detector_backend"] = args.detector
    if args.model_path is not None:
        overrides["model_path"] = args.model_path
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    return overrides


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    container = ApplicationContainer()
    settings = load_settings(**_overrides(args))
    container.settings.override(providers.Object(settings))
    container.logging()
    logger = container.logger()
    bus = container.event_bus()

    def notice_listener(notice: Notice) -> None:
        log = logger.error if notice.level == "error" else logger.info
        log("notice", title=notice.title, message=notice.message)

    session = container.live_session()
    logger.info("app.started", backend=settings.detector_backend, interval=settings.poll_interval)
    deadline = None if args.duration is None else time.monotonic() + args.duration
    try:
        with bus.subscription(NOTICE_TOPIC, notice_listener):
            session.start()
            _run(session, args, settings.poll_interval, deadline)
    except KeyboardInterrupt:
        logger.info("app.interrupted")
    finally:
        session.stop()
        if args.preview:
            cv2.destroyAllWindows()
        container.shutdown_resources()

    logger.info("app.finished")
    return 0


def _run(session, args: argparse.Namespace, interval: float, deadline: float | None) -> None:
    """Print a status line per tick, and with ``--preview`` show the annotated frame."""

    while deadline is None or time.monotonic() < deadline:
        snapshot = session.snapshot()
        print(snapshot.describe())
        if not args.preview:
            time.sleep(interval)
            continue
        frame = session.capture_frame()
        if frame is not None:
            cv2.imshow(PREVIEW_WINDOW, render_overlay(frame.data, snapshot))
        if cv2.waitKey(max(1, int(interval * 1000))) & 0xFF == ord("q"):
            return


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
