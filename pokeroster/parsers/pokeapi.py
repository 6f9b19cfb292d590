"""
PokeAPI payload parsing.

Converts listing pages (`/pokemon?offset=&limit=`) and detail payloads
(`/pokemon/{name}`) into catalog models. Values outside the stat caps are
clamped; missing values default to 0.
"""

from typing import Any

from pokeroster.models.creature import STAT_CAPS, CatalogPageEntry, CreatureRecord

# PokeAPI stat name -> CreatureRecord field
_STAT_FIELDS = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "speed": "speed",
}


def _clamp(value: int, cap: int) -> int:
    return max(0, min(cap, value))


def parse_listing(payload: dict[str, Any], page: int) -> list[CatalogPageEntry]:
    """Parse one listing page into page entries for `page`."""
    return [
        CatalogPageEntry(page=page, name=item["name"], url=item["url"])
        for item in payload.get("results", [])
        if item.get("name") and item.get("url")
    ]


def parse_types(payload: dict[str, Any]) -> tuple[str, ...]:
    """Type names ordered by slot. Entries without a type name are ignored."""
    slots = sorted(payload.get("types") or [], key=lambda entry: entry.get("slot", 0))
    names = ((entry.get("type") or {}).get("name") for entry in slots)
    return tuple(name for name in names if name)


def parse_stats(payload: dict[str, Any]) -> dict[str, int]:
    """Battle stats from the `stats` list, clamped to their caps."""
    stats = {field: 0 for field in _STAT_FIELDS.values()}
    for entry in payload.get("stats", []):
        field = _STAT_FIELDS.get(entry.get("stat", {}).get("name", ""))
        if field is not None:
            stats[field] = _clamp(int(entry.get("base_stat") or 0), STAT_CAPS[field])
    return stats


def parse_detail(payload: dict[str, Any], is_favorite: bool = False) -> CreatureRecord:
    """
    Parse a detail payload into a CreatureRecord.

    Raises:
        InvalidArgumentError: If the payload lacks a usable id, name or types
    """
    experience = int(payload.get("base_experience") or 0)
    return CreatureRecord(
        id=int(payload.get("id") or 0),
        name=payload.get("name", ""),
        height=int(payload.get("height") or 0),
        weight=int(payload.get("weight") or 0),
        experience=experience,
        types=parse_types(payload),
        exp=_clamp(experience, STAT_CAPS["exp"]),
        is_favorite=is_favorite,
        **parse_stats(payload),
    )
