from __future__ import annotations

import html
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import bleach

from ..core.errors import NotFound
from ..schemas import ProviderGame, ProviderImage, ProviderInvolvedCompany, ProviderNamed

logger = logging.getLogger(__name__)

THUMB_SIZE = "t_thumb"
COVER_SIZE = "t_cover_big"
SCREENSHOT_SIZE = "t_screenshot_med"

# Columns the sync is allowed to write.
METADATA_COLUMNS = (
    "summary",
    "storyline",
    "rating",
    "release_date",
    "cover_url",
    "screenshots",
    "genres",
    "platforms",
    "developer",
    "publisher",
)


def epoch_to_date(timestamp: Optional[int]) -> Optional[date]:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).date()
    except (OverflowError, OSError, ValueError):
        logger.warning("Ignoring out of range release timestamp %s", timestamp)
        return None


def resize_image_url(url: Optional[str], size: str) -> Optional[str]:
    if not url:
        return None
    resized = url.replace(THUMB_SIZE, size)
    if resized.startswith("//"):
        resized = f"https:{resized}"
    return resized


def _sanitize_text(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = bleach.clean(value, tags=set(), strip=True, strip_comments=True)
    cleaned = html.unescape(cleaned).replace("\r\n", "\n").strip()
    return cleaned or None


def _image_urls(images: Optional[Iterable[ProviderImage]], size: str) -> Optional[List[str]]:
    if images is None:
        return None
    urls = [resize_image_url(image.url, size) for image in images]
    return [url for url in urls if url]


def _names(items: Optional[Iterable[ProviderNamed]]) -> Optional[List[str]]:
    if items is None:
        return None
    return [item.name for item in items if item.name]


def first_company(
    companies: Optional[Iterable[ProviderInvolvedCompany]],
    role: str,
) -> Optional[str]:
    """Name of the first company flagged with role, in provider order."""
    for involved in companies or ():
        if getattr(involved, role, False):
            return involved.company.name
    return None


def denormalize(record: ProviderGame) -> Dict[str, Any]:
    return {
        "summary": _sanitize_text(record.summary),
        "storyline": _sanitize_text(record.storyline),
        "rating": record.rating,
        "release_date": epoch_to_date(record.first_release_date),
        "cover_url": resize_image_url(record.cover.url, COVER_SIZE) if record.cover else None,
        "screenshots": _image_urls(record.screenshots, SCREENSHOT_SIZE),
        "genres": _names(record.genres),
        "platforms": _names(record.platforms),
        "developer": first_company(record.involved_companies, "developer"),
        "publisher": first_company(record.involved_companies, "publisher"),
    }


def sync_game_metadata(catalog, provider, game_id: str):
    """Refresh one catalog entry from the provider record it links to."""
    game = catalog.get_game(game_id)
    if game.igdb_id is None:
        return game

    record = provider.fetch_by_id(game.igdb_id)
    if record is None:
        logger.warning("Game not found in IGDB: %s", game.igdb_id)
        raise NotFound("IGDB game")

    return catalog.apply_metadata(game_id, record)
