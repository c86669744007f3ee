"""
STARGAZER Sky Data Model

Immutable value types shared by every engine component:
- CelestialObject: catalog entry (star or synthesized planet)
- Observer: where and when the sky is observed
- DevicePointing: where the device is aimed
- VisibleObject: a catalog entry with its alt/az for one tick
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ObjectKind(Enum):
    """Kind of catalog entry, set at construction."""
    STAR = "star"
    PLANET = "planet"


def _normalize_degrees(value: float) -> float:
    value = value % 360.0
    return 0.0 if value == 360.0 else value


@dataclass(frozen=True)
class CelestialObject:
    """A star or planet in equatorial coordinates.

    RA is normalized into [0, 360) and Dec clamped into [-90, 90] on
    construction so every consumer sees canonical values.
    """
    id: int
    name: str
    ra: float                               # Right Ascension (degrees)
    dec: float                              # Declination (degrees)
    magnitude: float                        # Apparent magnitude (lower = brighter)
    distance_ly: Optional[float] = None     # Light years
    spectral_type: Optional[str] = None
    constellation: Optional[str] = None     # Pattern membership label
    kind: ObjectKind = ObjectKind.STAR

    def __post_init__(self):
        object.__setattr__(self, "ra", _normalize_degrees(float(self.ra)))
        object.__setattr__(self, "dec", max(-90.0, min(90.0, float(self.dec))))

    @property
    def is_planet(self) -> bool:
        return self.kind is ObjectKind.PLANET

    def to_dict(self) -> dict:
        """Convert to the catalog record format."""
        return {
            "id": self.id,
            "name": self.name,
            "ra": self.ra,
            "dec": self.dec,
            "magnitude": self.magnitude,
            "distance": self.distance_ly,
            "spectralType": self.spectral_type,
            "constellation": self.constellation,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class Observer:
    """Observer location and instant. Naive datetimes are taken as UTC."""
    latitude: float
    longitude: float
    when: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def utc(self) -> datetime:
        """The observation instant as an aware UTC datetime."""
        if self.when.tzinfo is None:
            return self.when.replace(tzinfo=timezone.utc)
        return self.when.astimezone(timezone.utc)


@dataclass(frozen=True)
class DevicePointing:
    """Device aim in horizontal coordinates.

    Azimuth is 0 = north, increasing clockwise (east = 90).
    """
    azimuth: float
    altitude: float

    def __post_init__(self):
        object.__setattr__(self, "azimuth", _normalize_degrees(float(self.azimuth)))
        object.__setattr__(self, "altitude", max(-90.0, min(90.0, float(self.altitude))))


@dataclass(frozen=True)
class VisibleObject:
    """A catalog object with its horizontal position at the query instant."""
    obj: CelestialObject
    altitude: float
    azimuth: float

    @property
    def id(self) -> int:
        return self.obj.id

    @property
    def name(self) -> str:
        return self.obj.name

    @property
    def compass_direction(self) -> str:
        """Sixteen-point compass direction of the azimuth."""
        directions = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
                      "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]
        return directions[round(self.azimuth / 22.5) % 16]
