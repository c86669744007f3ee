"""
STARGAZER Scheduler
Drives the sky engine at three independent cadences.

    +----------------------+   every 2.0 s (worker thread)
    |  candidate refresh   |---> catalog query + planets -> CandidateIndex
    +----------------------+          (swapped in by one assignment)
               |
    +----------v-----------+   every 0.1 s
    |   visibility tick    |---> SkyFrame (visible objects, reticle id)
    +----------------------+
               |
    +----------v-----------+   every 0.45 s
    |   detection cycle    |---> DetectionResult (constellation, segments)
    +----------------------+

Each loop survives errors in a single iteration. A late tick's frame simply
replaces the previous one. Consumers subscribe with register_callback and
receive (event, data) for "candidates", "tick", "reticle" and "detection".

Usage:
    from stargazer.config import load_config
    from stargazer.engine import SkyEngine
    from stargazer.scheduler import SkyScheduler

    config = load_config()
    engine = SkyEngine.from_config(config)
    scheduler = SkyScheduler(engine, pointing_provider, location_provider)

    await scheduler.start()
    ...
    await scheduler.shutdown()
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from stargazer.engine import SkyEngine, SkyFrame
from stargazer.exceptions import SchedulerError
from stargazer.logging_config import get_logger, log_exception, log_timing, tick_context
from services.catalog.models import DevicePointing, Observer
from services.constellations.detector import DetectionResult
from services.reticle.selector import ReticleTracker
from services.visibility.candidate_index import CandidateIndex

logger = get_logger("scheduler")


__all__ = [
    "SkyScheduler",
    "PointingProvider",
    "LocationProvider",
    "TaskStatus",
    "TaskInfo",
]


# =============================================================================
# Provider Protocols
# =============================================================================


class PointingProvider(Protocol):
    """Source of the live device pointing (orientation sensors)."""

    @property
    def pointing(self) -> DevicePointing:
        """Current device pointing."""
        ...


class LocationProvider(Protocol):
    """Source of the observer location (GPS / network)."""

    @property
    def location(self) -> Optional[Tuple[float, float]]:
        """(latitude, longitude) in degrees, or None while no fix exists."""
        ...


# =============================================================================
# Task Tracking
# =============================================================================


class TaskStatus(Enum):
    """Periodic task states."""
    STOPPED = "stopped"
    RUNNING = "running"
    ERROR = "error"


@dataclass
class TaskInfo:
    """Bookkeeping for one periodic task."""
    name: str
    period_sec: float
    status: TaskStatus = TaskStatus.STOPPED
    iterations: int = 0
    errors: int = 0
    last_error: Optional[str] = None
    last_run: Optional[datetime] = None


# =============================================================================
# Scheduler
# =============================================================================


class SkyScheduler:
    """
    Periodic driver for a SkyEngine.

    The candidate index and the latest frame are replaced by whole-object
    assignment, so a reader always sees either the old or the new value.
    The detector's state is only touched from the detection loop.
    """

    def __init__(
        self,
        engine: SkyEngine,
        pointing_provider: PointingProvider,
        location_provider: Optional[LocationProvider] = None,
        utc_now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.engine = engine
        self.pointing_provider = pointing_provider
        self.location_provider = location_provider
        self._utc_now = utc_now

        cadence = engine.config.scheduler
        self.tasks: Dict[str, TaskInfo] = {
            "refresh": TaskInfo("refresh", cadence.candidate_refresh_sec),
            "tick": TaskInfo("tick", cadence.visibility_tick_sec),
            "detection": TaskInfo("detection", cadence.detection_interval_sec),
        }

        self._index: Optional[CandidateIndex] = None
        self._frame: Optional[SkyFrame] = None
        self._detection: Optional[DetectionResult] = None
        self._reticle = ReticleTracker()

        self._running = False
        self._loops: List[asyncio.Task] = []
        self._callbacks: List[Callable] = []

        logger.info("Scheduler initialized")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def candidate_index(self) -> Optional[CandidateIndex]:
        return self._index

    @property
    def latest_frame(self) -> Optional[SkyFrame]:
        return self._frame

    @property
    def latest_detection(self) -> Optional[DetectionResult]:
        return self._detection

    @property
    def selected_id(self) -> Optional[int]:
        return self._reticle.selected_id

    def current_observer(self) -> Tuple[Observer, bool]:
        """Observer for now, and whether the configured fallback location was used."""
        location = self.location_provider.location if self.location_provider else None
        when = self._utc_now()
        if location is None:
            fallback = self.engine.config.observer
            return Observer(fallback.latitude, fallback.longitude, when), True
        latitude, longitude = location
        return Observer(latitude, longitude, when), False

    # =========================================================================
    # Single Iterations
    # =========================================================================

    def _build_index(self, observer: Observer) -> CandidateIndex:
        candidates = self.engine.load_candidates(observer.latitude)
        return self.engine.build_index(candidates, observer.when)

    async def refresh_candidates(self) -> CandidateIndex:
        """Rebuild the candidate index off the event loop and swap it in."""
        observer, _ = self.current_observer()
        with log_timing(logger, "Candidate refresh"):
            index = await asyncio.to_thread(self._build_index, observer)
        self._index = index
        logger.debug(f"Candidate set swapped in: {len(index)} objects")
        await self._notify_callbacks("candidates", index)
        return index

    async def run_tick_once(self) -> SkyFrame:
        """One visibility tick over the current candidate index."""
        if self._index is None:
            await self.refresh_candidates()

        observer, fallback = self.current_observer()
        pointing = self.pointing_provider.pointing
        budget = self.tasks["tick"].period_sec
        with log_timing(logger, "Visibility tick", warn_threshold_sec=budget):
            frame = self.engine.tick(observer, pointing, self._index,
                                     using_fallback_location=fallback)
        self._frame = frame
        await self._notify_callbacks("tick", frame)

        if self._reticle.update(frame.reticle_id):
            await self._notify_callbacks("reticle", frame.reticle_id)
        return frame

    async def run_detection_once(self, now: Optional[float] = None) -> Optional[DetectionResult]:
        """One detection cycle over the latest frame. None if throttled or no frame yet."""
        frame = self._frame
        if frame is None:
            return None
        with log_timing(logger, "Detection cycle"):
            result = self.engine.detect(frame, now=now)
        if result is None:
            return None
        self._detection = result
        await self._notify_callbacks("detection", result)
        return result

    # =========================================================================
    # Lifecycle Management
    # =========================================================================

    async def start(self) -> bool:
        """
        Load the first candidate set and start the periodic tasks.

        Returns:
            True if started successfully
        """
        if self._running:
            logger.warning("Scheduler already running")
            return True

        logger.info("Starting scheduler...")
        try:
            await self.refresh_candidates()
        except Exception as e:
            raise SchedulerError(f"Initial candidate load failed: {e}") from e

        self._running = True
        self._loops = [
            asyncio.create_task(self._periodic(self.tasks["refresh"], self.refresh_candidates)),
            asyncio.create_task(self._periodic(self.tasks["tick"], self.run_tick_once)),
            asyncio.create_task(self._periodic(self.tasks["detection"], self.run_detection_once)),
        ]
        logger.info("Scheduler started")
        return True

    async def shutdown(self):
        """Cancel the periodic tasks."""
        if not self._running:
            return

        logger.info("Shutting down scheduler...")
        self._running = False
        for task in self._loops:
            task.cancel()
        for task in self._loops:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._loops = []

        for info in self.tasks.values():
            if info.status == TaskStatus.RUNNING:
                info.status = TaskStatus.STOPPED
        logger.info("Scheduler shutdown complete")

    async def _periodic(self, info: TaskInfo, step: Callable[[], Awaitable[Any]]):
        """Run step every info.period_sec until cancelled."""
        info.status = TaskStatus.RUNNING
        while self._running:
            started = time.monotonic()
            try:
                with tick_context(prefix=info.name):
                    await step()
                info.iterations += 1
                info.last_run = datetime.now(timezone.utc)
                if info.status == TaskStatus.ERROR:
                    info.status = TaskStatus.RUNNING
            except asyncio.CancelledError:
                break
            except Exception as e:
                info.errors += 1
                info.last_error = str(e)
                info.status = TaskStatus.ERROR
                log_exception(logger, f"{info.name} iteration failed", e)

            elapsed = time.monotonic() - started
            try:
                await asyncio.sleep(max(0.0, info.period_sec - elapsed))
            except asyncio.CancelledError:
                break

    # =========================================================================
    # Status and Information
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        """Get overall scheduler status."""
        frame = self._frame
        detection = self._detection
        return {
            "running": self._running,
            "candidates": len(self._index) if self._index is not None else 0,
            "visible": len(frame.visible) if frame else 0,
            "using_fallback_location": frame.using_fallback_location if frame else None,
            "selected_id": self._reticle.selected_id,
            "constellation": detection.name if detection else None,
            "tasks": {
                name: {
                    "status": info.status.value,
                    "period_sec": info.period_sec,
                    "iterations": info.iterations,
                    "errors": info.errors,
                    "last_error": info.last_error,
                }
                for name, info in self.tasks.items()
            },
        }

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def register_callback(self, callback: Callable):
        """Register callback for scheduler events."""
        self._callbacks.append(callback)

    async def _notify_callbacks(self, event: str, data: Any = None):
        """Notify registered callbacks."""
        for callback in self._callbacks:
            try:
                if inspect.iscoroutinefunction(callback):
                    await callback(event, data)
                else:
                    callback(event, data)
            except Exception as e:
                logger.error(f"Callback error: {e}")


# =============================================================================
# Factory Function
# =============================================================================


def create_scheduler(
    pointing_provider: PointingProvider,
    location_provider: Optional[LocationProvider] = None,
    config_path: Optional[str] = None,
) -> SkyScheduler:
    """
    Create a scheduler with an engine built from configuration.

    Args:
        pointing_provider: Live device pointing source
        location_provider: Optional observer location source
        config_path: Optional path to config file

    Returns:
        Configured SkyScheduler instance
    """
    from stargazer.config import load_config

    config = load_config(config_path)
    return SkyScheduler(SkyEngine.from_config(config), pointing_provider, location_provider)
