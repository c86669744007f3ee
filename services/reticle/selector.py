"""
STARGAZER Reticle Selector

Answers "what is the user aiming at". Two forms share one selection rule
(nearest wins; among equals the first in input order is kept):

- Angular: nearest visible object to the device pointing, accepted only
  within a threshold in degrees.
- Screen space: objects projected to pixels by the renderer, accepted only
  inside a square reticle centred on the screen.

ReticleTracker turns a stream of selections into change events.
"""

import logging
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from stargazer import constants
from services.catalog.models import DevicePointing, VisibleObject
from services.constellations.detector import sky_dome_position
from services.visibility.visibility_filter import separation_from_pointing

logger = logging.getLogger("stargazer.reticle")

# Renderer hook: sky-dome position -> pixel (x, y), or None if off-screen
Projector = Callable[[Tuple[float, float, float]], Optional[Tuple[float, float]]]


class ScreenPoint(NamedTuple):
    """An object projected into screen pixels."""
    object_id: int
    x: float
    y: float


def select_nearest(
    visible: Sequence[VisibleObject],
    pointing: DevicePointing,
    threshold: float = constants.DEFAULT_RETICLE_RADIUS_DEG,
) -> Optional[int]:
    """Id of the visible object nearest the pointing, if within threshold degrees."""
    best: Optional[VisibleObject] = None
    best_dist = float("inf")
    for v in visible:
        d = separation_from_pointing(v, pointing)
        if d < best_dist:
            best = v
            best_dist = d

    if best is None or best_dist > threshold:
        return None
    return best.id


def project_visible(visible: Iterable[VisibleObject], projector: Projector) -> List[ScreenPoint]:
    """Project visible objects through the renderer; off-screen ones are dropped."""
    points = []
    for v in visible:
        pixel = projector(sky_dome_position(v.altitude, v.azimuth))
        if pixel is None:
            continue
        points.append(ScreenPoint(v.id, float(pixel[0]), float(pixel[1])))
    return points


def _in_reticle(point: ScreenPoint, center: Tuple[float, float], half: float) -> bool:
    cx, cy = center
    return cx - half <= point.x <= cx + half and cy - half <= point.y <= cy + half


def points_in_reticle(
    points: Iterable[Optional[ScreenPoint]],
    center: Tuple[float, float],
    reticle_size: float = constants.DEFAULT_RETICLE_SIZE_PX,
) -> List[Tuple[ScreenPoint, float]]:
    """All points inside the reticle with their squared pixel distance, closest first."""
    half = reticle_size / 2.0
    hits = []
    for point in points:
        if point is None or not _in_reticle(point, center, half):
            continue
        d2 = (point.x - center[0]) ** 2 + (point.y - center[1]) ** 2
        hits.append((point, d2))
    hits.sort(key=lambda hit: hit[1])
    return hits


def select_in_reticle(
    points: Iterable[Optional[ScreenPoint]],
    center: Tuple[float, float],
    reticle_size: float = constants.DEFAULT_RETICLE_SIZE_PX,
) -> Optional[int]:
    """Id of the projected object nearest the reticle centre, if inside it."""
    hits = points_in_reticle(points, center, reticle_size)
    return hits[0][0].object_id if hits else None


class ReticleTracker:
    """Remembers the last selection and reports only changes."""

    def __init__(self):
        self._last_id: Optional[int] = None

    @property
    def selected_id(self) -> Optional[int]:
        return self._last_id

    def update(self, object_id: Optional[int]) -> bool:
        """Record a selection. Returns True if it differs from the previous one."""
        if object_id == self._last_id:
            return False
        logger.debug(f"Reticle selection {self._last_id} -> {object_id}")
        self._last_id = object_id
        return True

    def reset(self) -> None:
        self._last_id = None
