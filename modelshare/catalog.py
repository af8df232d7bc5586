"""
In-memory derivations over fetched model lists: search, category filter,
sorting, stats and file size formatting.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Iterable, Optional

from modelshare.types import Model

ALL_CATEGORIES = "all"
CATEGORIES = (
    ALL_CATEGORIES,
    "architecture",
    "characters",
    "vehicles",
    "props",
    "landscapes",
    "furniture",
    "weapons",
)
SORT_OPTIONS = ("newest", "popular", "downloads", "views")

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


@dataclass
class ModelStats:
    downloads: int = 0
    views: int = 0
    likes: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProfileStats:
    downloads: int = 0
    views: int = 0
    models: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def filter_models(
    models: Iterable[Model], query: str = "", category: str = ALL_CATEGORIES
) -> list[Model]:
    """Case-insensitive match on title, description or any tag, then category."""
    needle = (query or "").lower()
    results = list(models)
    if needle:
        results = [
            m
            for m in results
            if _contains(m.title, needle)
            or _contains(m.description, needle)
            or any(needle in tag.lower() for tag in m.tags or [])
        ]
    if category and category != ALL_CATEGORIES:
        results = [m for m in results if m.category == category]
    return results


def sort_models(models: Iterable[Model], sort_by: str = "newest") -> list[Model]:
    results = list(models)
    if sort_by == "newest":
        results.sort(key=lambda m: m.created_at or "", reverse=True)
    elif sort_by in ("popular", "downloads"):
        results.sort(key=lambda m: m.downloads_count or 0, reverse=True)
    elif sort_by == "views":
        results.sort(key=lambda m: m.view_count or 0, reverse=True)
    return results


def explore(
    models: Iterable[Model],
    query: str = "",
    category: str = ALL_CATEGORIES,
    sort_by: str = "newest",
) -> list[Model]:
    return sort_models(filter_models(models, query, category), sort_by)


def search_models(models: Iterable[Model], term: str) -> list[Model]:
    """Dashboard search: title or description only."""
    needle = (term or "").lower()
    return [
        m for m in models if _contains(m.title, needle) or _contains(m.description, needle)
    ]


def dashboard_stats(models: Iterable[Model]) -> ModelStats:
    stats = ModelStats()
    for m in models:
        stats.downloads += m.downloads_count or 0
        stats.views += m.view_count or 0
        stats.likes += m.likes_count or 0
    return stats


def profile_stats(models: Iterable[Model]) -> ProfileStats:
    stats = ProfileStats()
    for m in models:
        stats.downloads += m.downloads_count or 0
        stats.views += m.view_count or 0
        stats.models += 1
    return stats


def recent_activity(models: Iterable[Model], limit: int = 5) -> list[dict]:
    newest = sort_models(models, "newest")[:limit]
    return [
        {"id": m.id, "type": "upload", "title": m.title, "date": m.created_at}
        for m in newest
    ]


def related_models(candidates: Iterable[Model], model: Model, limit: int = 3) -> list[Model]:
    """Other models in the same category as `model`."""
    if not model.category:
        return []
    related = [
        m for m in candidates if m.id != model.id and m.category == model.category
    ]
    return related[:limit]


def format_file_size(num_bytes: Optional[int]) -> str:
    """1024-based size with at most two decimals, e.g. "10 KB" or "1.5 MB"."""
    if not num_bytes:
        return "0 Bytes"
    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"
