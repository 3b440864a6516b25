"""
Location normalization for USGS place strings.

USGS `place` values look like "45 km NE of Hualien City, Taiwan",
"south of the Fiji Islands" or "5km NNW of The Geysers, CA". The rules
below reduce them to a region name ("Taiwan", "Fiji", "California") so
that events can be grouped by location and matched against the
Ring-of-Fire allow-list.
"""
import re
from types import MappingProxyType
from typing import Tuple, Pattern

from quakereport.errors import DerivationError


US_STATES = MappingProxyType({
    "al": "alabama", "ak": "alaska", "az": "arizona", "ar": "arkansas",
    "ca": "california", "co": "colorado", "ct": "connecticut", "de": "delaware",
    "fl": "florida", "ga": "georgia", "hi": "hawaii", "id": "idaho",
    "il": "illinois", "in": "indiana", "ia": "iowa", "ks": "kansas",
    "ky": "kentucky", "la": "louisiana", "me": "maine", "md": "maryland",
    "ma": "massachusetts", "mi": "michigan", "mn": "minnesota", "ms": "mississippi",
    "mo": "missouri", "mt": "montana", "ne": "nebraska", "nv": "nevada",
    "nh": "new hampshire", "nj": "new jersey", "nm": "new mexico", "ny": "new york",
    "nc": "north carolina", "nd": "north dakota", "oh": "ohio", "ok": "oklahoma",
    "or": "oregon", "pa": "pennsylvania", "ri": "rhode island", "sc": "south carolina",
    "sd": "south dakota", "tn": "tennessee", "tx": "texas", "ut": "utah",
    "vt": "vermont", "va": "virginia", "wa": "washington", "wv": "west virginia",
    "wi": "wisconsin", "wy": "wyoming",
})

RING_OF_FIRE = frozenset({
    "Philippines", "Japan", "Taiwan", "Vanuatu", "Indonesia",
    "Papua New Guinea", "Solomon Islands", "New Zealand", "Tonga", "Fiji",
    "Chile", "Peru", "Ecuador", "Colombia", "Mexico",
    "Guatemala", "El Salvador", "Nicaragua", "Costa Rica", "Panama",
    "California", "Oregon", "Washington", "Russia", "Kuril Islands",
    "Northern Mariana Islands", "Guam", "Samoa", "New Caledonia",
    "Aleutian Islands", "Alaska",
})

# Ordered rewrite rules, applied left to right to the lowercased place.
STRIP_RULES: Tuple[Tuple[Pattern, str], ...] = (
    (re.compile(r"^.*, "), ""),
    (re.compile(r"^.*\bof the "), ""),
    (re.compile(r"^.*\bof "), ""),
    (re.compile(r" region$"), ""),
    (re.compile(r" earthquake.*$"), ""),
)

# Whole-string canonicalization; first match wins.
CANONICAL_RULES: Tuple[Tuple[Pattern, str], ...] = (
    (re.compile(r"atlantic"), "atlantic ocean"),
    (re.compile(r"pacific"), "pacific ocean"),
    (re.compile(r"ridge"), "ocean"),
)

LITERAL_REPLACEMENTS = MappingProxyType({
    "mx": "mexico",
    "fiji islands": "fiji",
    "philippine islands": "philippines",
})

_MAX_PASSES = 8


def expand_state(code: str) -> str:
    """Expand a two-letter US state code to its titlecased name."""
    try:
        return US_STATES[code.strip().lower()].title()
    except KeyError:
        raise DerivationError(f"Unknown US state code: {code!r}") from None


def _rewrite(text: str) -> str:
    for pattern, replacement in STRIP_RULES:
        text = pattern.sub(replacement, text).strip()

    for pattern, replacement in CANONICAL_RULES:
        if pattern.search(text):
            text = replacement
            break

    text = LITERAL_REPLACEMENTS.get(text, text)

    if text in US_STATES:
        text = US_STATES[text]

    return text


def normalize_location(place: str) -> str:
    """
    Reduce a raw place string to a titlecased region name.

    The rewrite pass is repeated until the string is stable, so
    normalize_location(normalize_location(x)) == normalize_location(x).
    """
    if not isinstance(place, str):
        raise DerivationError(f"Place is not a string: {place!r}")

    text = place.strip().lower()
    for _ in range(_MAX_PASSES):
        rewritten = _rewrite(text)
        if rewritten == text:
            break
        text = rewritten

    if not text:
        raise DerivationError(f"Place normalizes to an empty string: {place!r}")

    return text.title()


def in_ring_of_fire(location: str) -> bool:
    """Exact-match membership; unlisted places count as outside."""
    return location in RING_OF_FIRE
