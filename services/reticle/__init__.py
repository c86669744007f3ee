"""
STARGAZER Reticle Service

Nearest-object selection in angular and screen-pixel space.
"""

from .selector import (
    Projector,
    ScreenPoint,
    ReticleTracker,
    select_nearest,
    select_in_reticle,
    points_in_reticle,
    project_visible,
)

__all__ = [
    "Projector",
    "ScreenPoint",
    "ReticleTracker",
    "select_nearest",
    "select_in_reticle",
    "points_in_reticle",
    "project_visible",
]
