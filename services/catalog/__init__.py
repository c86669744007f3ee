"""
STARGAZER Catalog Service

Sky data model, the in-memory star catalog and its loaders
(bundled JSON asset, HYG database CSV).
"""

from .models import (
    CelestialObject,
    DevicePointing,
    ObjectKind,
    Observer,
    VisibleObject,
)

from .catalog import StarCatalog

from .loader import (
    BUNDLED_STARS,
    load_catalog,
    load_hyg_csv,
    load_stars_json,
    parse_star_records,
)

__all__ = [
    "CelestialObject",
    "DevicePointing",
    "ObjectKind",
    "Observer",
    "VisibleObject",
    "StarCatalog",
    "BUNDLED_STARS",
    "load_catalog",
    "load_hyg_csv",
    "load_stars_json",
    "parse_star_records",
]
