"""
STARGAZER Catalog Loaders

Reads star records from external assets into CelestialObjects:
- JSON star lists ({id, name, ra, dec, magnitude, distance?, spectralType?,
  constellation?})
- HYG database CSV, keeping only the N brightest stars

Malformed rows are skipped individually and counted; only an unreadable or
structurally invalid file raises CatalogError.
"""

import csv
import heapq
import json
import logging
import math
from pathlib import Path
from typing import Any, Iterable, List, Optional

from stargazer import constants
from stargazer.exceptions import CatalogError
from services.catalog.catalog import StarCatalog
from services.catalog.models import CelestialObject

logger = logging.getLogger("stargazer.catalog.loader")

DATA_DIR = Path(__file__).parent / "data"
BUNDLED_STARS = DATA_DIR / "bright_stars.json"


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    result = float(value)
    return result if math.isfinite(result) else None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def star_from_record(record: dict) -> CelestialObject:
    """Build a star from one catalog record.

    Raises:
        KeyError, TypeError, ValueError: if a required field is missing or
            not numeric; callers skip the row.
    """
    ra = float(record["ra"])
    dec = float(record["dec"])
    magnitude = float(record["magnitude"])
    if not (math.isfinite(ra) and math.isfinite(dec) and math.isfinite(magnitude)):
        raise ValueError("non-finite coordinate or magnitude")
    if not -90.0 <= dec <= 90.0:
        raise ValueError(f"declination out of range: {dec}")

    return CelestialObject(
        id=int(record["id"]),
        name=str(record["name"]),
        ra=ra,
        dec=dec,
        magnitude=magnitude,
        distance_ly=_optional_float(record.get("distance")),
        spectral_type=_optional_str(record.get("spectralType")),
        constellation=_optional_str(record.get("constellation")),
    )


def parse_star_records(records: Iterable[Any], source: str = "records") -> List[CelestialObject]:
    """Convert records to stars, skipping malformed ones."""
    stars: List[CelestialObject] = []
    skipped = 0
    for record in records:
        try:
            if not isinstance(record, dict):
                raise TypeError("record is not an object")
            stars.append(star_from_record(record))
        except (KeyError, TypeError, ValueError) as e:
            skipped += 1
            logger.debug(f"Skipping malformed star record in {source}: {e}")

    if skipped:
        logger.warning(f"Skipped {skipped} malformed star records in {source}")
    logger.info(f"Loaded {len(stars)} stars from {source}")
    return stars


def load_stars_json(path: Optional[str | Path] = None) -> List[CelestialObject]:
    """Load a JSON star list. None loads the bundled bright-star asset."""
    path = Path(path) if path else BUNDLED_STARS
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read star catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in star catalog {path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogError(f"Star catalog {path} must contain a JSON list")
    return parse_star_records(data, source=path.name)


def _hyg_name(row: dict, hyg_id: int) -> str:
    proper = _optional_str(row.get("proper"))
    bf = _optional_str(row.get("bf"))
    bayer = _optional_str(row.get("bayer"))
    flam = _optional_str(row.get("flam"))
    con = _optional_str(row.get("con"))

    if proper:
        return proper
    if bf:
        return bf
    if bayer and con:
        return f"{bayer} {con}"
    if flam and con:
        return f"{flam} {con}"
    return f"HYG-{hyg_id}"


def star_from_hyg_row(row: dict) -> CelestialObject:
    """Build a star from one HYG CSV row (ra in hours, dist in parsecs)."""
    hyg_id = int(row["id"])
    ra_hours = float(row["ra"])
    dec = float(row["dec"])
    magnitude = float(row["mag"])
    if not (math.isfinite(ra_hours) and math.isfinite(dec) and math.isfinite(magnitude)):
        raise ValueError("non-finite coordinate or magnitude")
    if not -90.0 <= dec <= 90.0:
        raise ValueError(f"declination out of range: {dec}")

    distance_ly = None
    dist_pc = _optional_float(row.get("dist"))
    if dist_pc is not None and dist_pc > 0.0:
        distance_ly = dist_pc * constants.LIGHT_YEARS_PER_PARSEC

    return CelestialObject(
        id=constants.HYG_ID_OFFSET + hyg_id,
        name=_hyg_name(row, hyg_id),
        ra=ra_hours * 15.0,
        dec=dec,
        magnitude=magnitude,
        distance_ly=distance_ly,
        spectral_type=_optional_str(row.get("spect")),
        constellation=_optional_str(row.get("con")),
    )


def load_hyg_csv(
    path: str | Path,
    limit: int = constants.HYG_DEFAULT_LIMIT,
) -> List[CelestialObject]:
    """Import the `limit` brightest stars of a HYG CSV, brightest first.

    Ids are offset by HYG_ID_OFFSET to keep them clear of hand-curated ids.
    """
    path = Path(path)
    if limit <= 0:
        return []

    # Max-heap on magnitude via negation: the faintest kept star sits on top
    heap: List[tuple] = []
    skipped = 0
    try:
        with open(path, encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            if not reader.fieldnames or "ra" not in reader.fieldnames:
                raise CatalogError(f"HYG CSV {path} has no usable header")
            for line_no, row in enumerate(reader, start=2):
                try:
                    star = star_from_hyg_row(row)
                except (KeyError, TypeError, ValueError):
                    skipped += 1
                    continue
                entry = (-star.magnitude, line_no, star)
                if len(heap) < limit:
                    heapq.heappush(heap, entry)
                elif star.magnitude < -heap[0][0]:
                    heapq.heapreplace(heap, entry)
    except OSError as e:
        raise CatalogError(f"Cannot read HYG CSV {path}: {e}") from e

    if skipped:
        logger.warning(f"Skipped {skipped} malformed rows in {path.name}")

    stars = sorted((entry[2] for entry in heap), key=lambda s: s.magnitude)
    logger.info(f"Imported {len(stars)} brightest stars from {path.name}")
    return stars


def load_catalog(
    stars_path: Optional[str | Path] = None,
    hyg_csv_path: Optional[str | Path] = None,
    hyg_limit: int = constants.HYG_DEFAULT_LIMIT,
) -> StarCatalog:
    """Build the startup catalog from the JSON list plus an optional HYG import."""
    stars = load_stars_json(stars_path)
    if hyg_csv_path:
        stars.extend(load_hyg_csv(hyg_csv_path, limit=hyg_limit))
    return StarCatalog(stars)
