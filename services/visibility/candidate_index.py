"""
STARGAZER Candidate Index

Per-tick prefilter for the visibility query. When the candidate set is
rebuilt, each object's RA/Dec is turned into an equatorial unit vector once.
Each tick then needs one pointing vector and one matrix-vector product to
discard candidates that cannot be inside the view box, before the exact
alt/az box test runs on the survivors.

The cone radius is the smallest one guaranteed to contain the whole box
(every box point lies within |d_alt| + |d_az| <= fov of the pointing), so the
index only saves work; it never changes which objects are visible.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from stargazer import constants
from services.astronomy.time_coordinates import (
    horizontal_to_equatorial,
    julian_date,
    local_sidereal_time,
    radec_to_unit_vector,
)
from services.catalog.models import CelestialObject, DevicePointing, Observer, VisibleObject
from services.visibility.visibility_filter import visible_at_lst


def cone_radius_for_fov(field_of_view: float) -> float:
    """Cone radius (degrees) enclosing the az/alt box of a field of view."""
    return min(field_of_view, 180.0) + constants.CANDIDATE_CONE_MARGIN_DEG


class CandidateIndex:
    """Immutable candidate set with precomputed equatorial unit vectors."""

    def __init__(self, objects: Iterable[CelestialObject]):
        self._objects: Tuple[CelestialObject, ...] = tuple(objects)
        count = len(self._objects)

        ra = np.radians(np.fromiter((o.ra for o in self._objects), dtype=np.float64, count=count))
        dec = np.radians(np.fromiter((o.dec for o in self._objects), dtype=np.float64, count=count))
        cos_dec = np.cos(dec)
        self._vectors = np.column_stack((cos_dec * np.cos(ra), cos_dec * np.sin(ra), np.sin(dec)))

    @classmethod
    def build(cls, objects: Iterable[CelestialObject]) -> "CandidateIndex":
        return cls(objects)

    def __len__(self) -> int:
        return len(self._objects)

    @property
    def objects(self) -> Sequence[CelestialObject]:
        return self._objects

    @property
    def vectors(self) -> np.ndarray:
        """(N, 3) unit vectors, row i belonging to objects[i]."""
        return self._vectors

    def within_cone(self, ra: float, dec: float, radius_deg: float) -> List[CelestialObject]:
        """Objects within radius_deg of an equatorial direction, in index order."""
        if radius_deg >= 180.0 or not self._objects:
            return list(self._objects)
        center = np.asarray(radec_to_unit_vector(ra, dec))
        dots = self._vectors @ center
        keep = np.nonzero(dots >= math.cos(math.radians(radius_deg)))[0]
        return [self._objects[i] for i in keep]

    def compute_visible(
        self,
        observer: Observer,
        pointing: DevicePointing,
        field_of_view: float,
        min_altitude: float,
    ) -> List[VisibleObject]:
        """Same result as visibility_filter.compute_visible over all objects."""
        lst = local_sidereal_time(julian_date(observer.utc), observer.longitude)
        if abs(math.cos(math.radians(observer.latitude))) < constants.AZIMUTH_DENOMINATOR_EPSILON:
            # At a pole every azimuth is reported as 0.0, so the box is not a cone
            survivors = self._objects
        else:
            ra, dec = horizontal_to_equatorial(
                observer.latitude, pointing.altitude, pointing.azimuth, lst
            )
            survivors = self.within_cone(ra, dec, cone_radius_for_fov(field_of_view))
        return visible_at_lst(observer.latitude, lst, pointing, field_of_view,
                              min_altitude, survivors)
