"""
STARGAZER Star Catalog

Immutable in-memory catalog loaded once at startup and passed explicitly to
the engine. Provides id lookup and the candidate query used by the scheduler's
low-frequency refresh task (magnitude limit plus a declination band that can
rise above the observer's horizon).
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from services.catalog.models import CelestialObject

logger = logging.getLogger("stargazer.catalog")


class StarCatalog:
    """Read-only collection of CelestialObjects keyed by id.

    Later entries with a duplicate id replace earlier ones, matching an
    insert-or-replace import. Objects are kept sorted by magnitude
    (brightest first) so candidate queries return them in that order.
    """

    def __init__(self, objects: Iterable[CelestialObject] = ()):
        by_id: Dict[int, CelestialObject] = {}
        for obj in objects:
            by_id[obj.id] = obj
        self._objects: Tuple[CelestialObject, ...] = tuple(
            sorted(by_id.values(), key=lambda o: (o.magnitude, o.id))
        )
        self._by_id: Mapping[int, CelestialObject] = by_id
        logger.debug(f"Catalog built with {len(self._objects)} objects")

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[CelestialObject]:
        return iter(self._objects)

    def __contains__(self, object_id: object) -> bool:
        return object_id in self._by_id

    @property
    def objects(self) -> Tuple[CelestialObject, ...]:
        return self._objects

    @property
    def by_id(self) -> Mapping[int, CelestialObject]:
        """Id -> object mapping, shared by reference (do not mutate)."""
        return self._by_id

    def get(self, object_id: int) -> Optional[CelestialObject]:
        return self._by_id.get(object_id)

    def find_by_name(self, name: str) -> Optional[CelestialObject]:
        """Case-insensitive exact name lookup."""
        wanted = name.strip().lower()
        for obj in self._objects:
            if obj.name.lower() == wanted:
                return obj
        return None

    def merged(self, extra: Iterable[CelestialObject]) -> "StarCatalog":
        """New catalog with extra objects added (extra wins on id clashes)."""
        return StarCatalog(list(self._objects) + list(extra))

    def candidates(self, max_magnitude: float, latitude: float) -> List[CelestialObject]:
        """Objects bright enough and within the declination band that can
        ever be above the horizon at this latitude.

        The band is (latitude - 90, latitude + 90) clamped to [-90, 90],
        with strict bounds, ordered brightest first.
        """
        min_dec = max(latitude - 90.0, -90.0)
        max_dec = min(latitude + 90.0, 90.0)
        return [
            obj for obj in self._objects
            if obj.magnitude <= max_magnitude and min_dec < obj.dec < max_dec
        ]
