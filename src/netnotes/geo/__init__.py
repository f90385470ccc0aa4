"""Place-name canonicalization."""

from netnotes.geo.cities import CITY_ALIASES, extract_geo_label, match_city, normalize_city

__all__ = ["CITY_ALIASES", "extract_geo_label", "match_city", "normalize_city"]
