from pokeroster.parsers.pokeapi import parse_detail, parse_listing, parse_stats, parse_types

__all__ = [
    "parse_detail",
    "parse_listing",
    "parse_stats",
    "parse_types",
]
