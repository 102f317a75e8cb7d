"""Destination catalogues used by the catalogue-backed scoring conditions.

``matches_campaign`` and ``high_inquiry_fit`` rules match a lead when its
destination contains any substring listed under the corresponding tag.
The defaults below can be overridden with a JSON file of the shape::

    {"group_campaign": ["kashmir", "goa"], "high_inquiry_fit": ["bali"]}

named by ``DESTINATION_CATALOGUE_PATH``.  The file is read once at
process start; tags missing from the file keep their defaults.
"""

import logging
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping

from pydantic import TypeAdapter, ValidationError

from app.core.constants import GROUP_CAMPAIGN_TAG, HIGH_INQUIRY_FIT_TAG

logger = logging.getLogger(__name__)

DestinationCatalogue = Mapping[str, FrozenSet[str]]

DEFAULT_DESTINATION_CATALOGUE: Dict[str, FrozenSet[str]] = {
    GROUP_CAMPAIGN_TAG: frozenset(
        {"kashmir", "ladakh", "kerala", "rajasthan", "himachal", "goa"}
    ),
    HIGH_INQUIRY_FIT_TAG: frozenset(
        {
            "dubai",
            "bali",
            "maldives",
            "thailand",
            "singapore",
            "europe",
            "paris",
            "switzerland",
        }
    ),
}

_CATALOGUE_FILE_ADAPTER = TypeAdapter(Dict[str, List[str]])


def build_catalogue(overrides: Mapping[str, List[str]]) -> Dict[str, FrozenSet[str]]:
    """Merge *overrides* over the defaults, normalising entries to lower case."""
    catalogue = dict(DEFAULT_DESTINATION_CATALOGUE)
    for tag, destinations in overrides.items():
        catalogue[tag] = frozenset(
            d.strip().lower() for d in destinations if d and d.strip()
        )
    return catalogue


def load_destination_catalogue(path: str = "") -> Dict[str, FrozenSet[str]]:
    """Return the catalogue, reading overrides from *path* when given.

    Raises:
        ValueError: If the file exists but is not a mapping of tag to a
            list of strings.
        FileNotFoundError: If *path* points to a missing file.
    """
    if not path:
        return dict(DEFAULT_DESTINATION_CATALOGUE)

    raw = Path(path).read_text(encoding="utf-8")
    try:
        overrides = _CATALOGUE_FILE_ADAPTER.validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid destination catalogue in {path}: {exc}") from exc

    catalogue = build_catalogue(overrides)
    logger.info(
        "Loaded destination catalogue from %s (%d tags)", path, len(catalogue)
    )
    return catalogue
