"""
STARGAZER Constellation Catalog

Static line-pattern definitions loaded once from a JSON asset:

    [{"name": "Orion", "lines": [[1, 8], [8, 3], ...]}, ...]

Definitions are immutable and shared by reference by every query.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from stargazer.exceptions import CatalogError
from services.catalog.loader import DATA_DIR

logger = logging.getLogger("stargazer.constellations.catalog")

BUNDLED_CONSTELLATIONS = DATA_DIR / "constellations.json"


@dataclass(frozen=True)
class ConstellationLine:
    """A line drawn between two catalog object ids."""
    a_id: int
    b_id: int


@dataclass(frozen=True)
class ConstellationDefinition:
    """Named star pattern."""
    name: str
    lines: Tuple[ConstellationLine, ...]

    @property
    def total_lines(self) -> int:
        return len(self.lines)

    @property
    def object_ids(self) -> frozenset:
        """Every object id referenced by a line."""
        return frozenset(i for line in self.lines for i in (line.a_id, line.b_id))


def _parse_line(pair: Any) -> ConstellationLine:
    if not isinstance(pair, (list, tuple)) or len(pair) != 2:
        raise ValueError(f"line must be a pair of ids, got {pair!r}")
    return ConstellationLine(int(pair[0]), int(pair[1]))


def parse_constellations(entries: Iterable[Any], source: str = "entries") -> List[ConstellationDefinition]:
    """Build definitions, skipping malformed entries and malformed lines."""
    definitions: List[ConstellationDefinition] = []
    skipped_entries = 0
    skipped_lines = 0

    for entry in entries:
        try:
            name = str(entry["name"]).strip()
            raw_lines = entry["lines"]
            if not name or not isinstance(raw_lines, list):
                raise ValueError("missing name or lines")
        except (KeyError, TypeError, ValueError):
            skipped_entries += 1
            continue

        lines = []
        for pair in raw_lines:
            try:
                lines.append(_parse_line(pair))
            except (TypeError, ValueError):
                skipped_lines += 1
        definitions.append(ConstellationDefinition(name=name, lines=tuple(lines)))

    if skipped_entries or skipped_lines:
        logger.warning(
            f"Skipped {skipped_entries} malformed constellations and "
            f"{skipped_lines} malformed lines in {source}"
        )
    logger.info(f"Loaded {len(definitions)} constellations from {source}")
    return definitions


def load_constellations(path: Optional[str | Path] = None) -> Tuple[ConstellationDefinition, ...]:
    """Load constellation definitions. None loads the bundled asset."""
    path = Path(path) if path else BUNDLED_CONSTELLATIONS
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise CatalogError(f"Cannot read constellation catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON in constellation catalog {path}: {e}") from e

    if not isinstance(data, list):
        raise CatalogError(f"Constellation catalog {path} must contain a JSON list")
    return tuple(parse_constellations(data, source=path.name))
