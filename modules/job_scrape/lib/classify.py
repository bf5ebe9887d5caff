"""
Location and recency heuristics applied by every adapter.

Both lean towards inclusion: missing or ambiguous data is accepted, because
dropping a relevant posting costs more than keeping an irrelevant one.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from .utils import now_utc, parse_timestamp


class LocationClass(str, Enum):
    USA = "usa"
    NON_USA = "non_usa"
    UNKNOWN = "unknown"


# Countries, major non-US cities and region codes. Matched on word boundaries,
# case-insensitively. Names shared with US places (Georgia, Paris TX, ...) are
# deliberately left out.
_NON_US_TOKENS = (
    # countries / territories
    "canada", "mexico", "united kingdom", "uk", "great britain", "england", "scotland", "wales",
    "ireland", "northern ireland", "germany", "deutschland", "france", "spain", "italy", "portugal",
    "netherlands", "belgium", "luxembourg", "switzerland", "austria", "sweden", "norway", "denmark",
    "finland", "iceland", "poland", "czech republic", "czechia", "slovakia", "hungary", "romania",
    "bulgaria", "greece", "croatia", "serbia", "slovenia", "estonia", "latvia", "lithuania",
    "ukraine", "russia", "belarus", "turkey", "türkiye", "israel", "egypt", "morocco", "nigeria",
    "kenya", "ghana", "south africa", "united arab emirates", "uae", "saudi arabia", "qatar",
    "india", "pakistan", "bangladesh", "sri lanka", "nepal", "china", "hong kong", "taiwan",
    "japan", "south korea", "korea", "singapore", "malaysia", "indonesia", "philippines",
    "vietnam", "thailand", "australia", "new zealand", "brazil", "argentina", "chile",
    "colombia", "peru", "uruguay", "costa rica", "guatemala", "ecuador", "venezuela",
    # cities
    "london", "edinburgh", "glasgow", "dublin", "belfast", "toronto", "vancouver", "montreal",
    "montréal", "ottawa", "calgary", "edmonton", "waterloo, on", "berlin", "munich", "münchen",
    "hamburg", "frankfurt", "cologne", "stuttgart", "paris, france", "lyon", "amsterdam",
    "rotterdam", "brussels", "zurich", "zürich", "geneva", "vienna", "madrid", "barcelona",
    "lisbon", "porto", "milan", "rome", "stockholm", "copenhagen", "oslo", "helsinki", "warsaw",
    "krakow", "kraków", "wroclaw", "prague", "budapest", "bucharest", "sofia", "athens", "kyiv",
    "kiev", "istanbul", "tel aviv", "dubai", "abu dhabi", "riyadh", "cairo", "lagos", "nairobi",
    "cape town", "johannesburg", "bangalore", "bengaluru", "hyderabad", "mumbai", "pune",
    "delhi", "new delhi", "gurgaon", "gurugram", "noida", "chennai", "kolkata", "karachi",
    "lahore", "dhaka", "beijing", "shanghai", "shenzhen", "guangzhou", "hangzhou", "taipei",
    "tokyo", "osaka", "seoul", "manila", "jakarta", "kuala lumpur", "bangkok", "ho chi minh",
    "hanoi", "sydney", "melbourne", "brisbane", "perth", "auckland", "wellington", "são paulo",
    "sao paulo", "rio de janeiro", "buenos aires", "santiago", "bogotá", "bogota", "medellín",
    "medellin", "lima", "mexico city", "ciudad de méxico", "guadalajara", "monterrey",
    # regions
    "emea", "apac", "latam", "europe", "eu", "asia", "asia pacific", "middle east", "africa",
    "nordics", "dach", "benelux", "anz", "latin america", "south america", "central america",
)

# US place names that contain a non-US token; removed before the non-US scan.
_US_PHRASES = ("new mexico", "new england", "perth amboy")

_US_STATE_NAMES = (
    "alabama", "alaska", "arizona", "arkansas", "california", "colorado", "connecticut",
    "delaware", "florida", "georgia", "hawaii", "idaho", "illinois", "indiana", "iowa",
    "kansas", "kentucky", "louisiana", "maine", "maryland", "massachusetts", "michigan",
    "minnesota", "mississippi", "missouri", "montana", "nebraska", "nevada", "new hampshire",
    "new jersey", "new mexico", "new york", "north carolina", "north dakota", "ohio", "oklahoma",
    "oregon", "pennsylvania", "rhode island", "south carolina", "south dakota", "tennessee",
    "texas", "utah", "vermont", "virginia", "washington", "west virginia", "wisconsin",
    "wyoming", "district of columbia",
)

_US_STATE_CODES = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA", "HI", "ID", "IL", "IN", "IA",
    "KS", "KY", "LA", "ME", "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC", "SD", "TN", "TX", "UT", "VT",
    "VA", "WA", "WV", "WI", "WY", "DC",
)

_US_TOKENS = ("united states", "united states of america", "usa", "u.s.a.", "u.s.", "us", "america")

# US cities sharing a name with a listed non-US city. Only the qualified
# form ("Dublin, CA", "Vancouver, Washington") is treated as US.
_US_NAMESAKES = {
    "amsterdam": ("NY",),
    "athens": ("GA", "OH", "TN", "AL", "TX"),
    "belfast": ("ME",),
    "berlin": ("NH", "CT", "MD", "WI"),
    "cairo": ("IL", "GA"),
    "delhi": ("NY",),
    "dublin": ("CA", "OH", "GA", "VA", "NH"),
    "geneva": ("IL", "NY", "OH"),
    "glasgow": ("KY", "MT"),
    "hamburg": ("NY", "PA"),
    "lima": ("OH",),
    "london": ("KY", "OH"),
    "melbourne": ("FL",),
    "milan": ("TN", "MI"),
    "peru": ("IN", "IL"),
    "rome": ("GA", "NY"),
    "rotterdam": ("NY",),
    "toronto": ("OH",),
    "vancouver": ("WA",),
    "vienna": ("VA",),
    "warsaw": ("IN",),
}
_STATE_NAME_BY_CODE = dict(zip(_US_STATE_CODES, _US_STATE_NAMES))


def _namesake_pattern() -> re.Pattern[str]:
    parts = []
    for city, codes in _US_NAMESAKES.items():
        states = "|".join(re.escape(s) for c in codes for s in (c, _STATE_NAME_BY_CODE[c]))
        parts.append(rf"{re.escape(city)}\s*,\s*(?:{states})")
    return re.compile(r"(?<![\w])(?:" + "|".join(parts) + r")(?![\w])", re.IGNORECASE)


def _word_pattern(tokens: tuple[str, ...]) -> re.Pattern[str]:
    alts = sorted({re.escape(t) for t in tokens}, key=len, reverse=True)
    return re.compile(r"(?<![\w])(?:" + "|".join(alts) + r")(?![\w])", re.IGNORECASE)


_NON_US_RE = _word_pattern(_NON_US_TOKENS)
_US_PHRASE_RE = _word_pattern(_US_PHRASES)
_US_NAMESAKE_RE = _namesake_pattern()
_US_RE = _word_pattern(_US_TOKENS + _US_STATE_NAMES)
# "Austin, TX" / "(NY)" / "CA - Remote": a state code next to punctuation, upper-case only.
_STATE_CODE_RE = re.compile(
    r"(?:[,(/|]\s*(?:" + "|".join(_US_STATE_CODES) + r")\b)"
    r"|(?:\b(?:" + "|".join(_US_STATE_CODES) + r")\s*[,)/|\-])"
)


def classify_location(location: str | None) -> LocationClass:
    """
    Map free-text location to USA / NON_USA / UNKNOWN.
    Non-US tokens win over US tokens ("New York or London" is NON_USA).
    """
    text = (location or "").strip()
    if not text:
        return LocationClass.UNKNOWN
    namesake = _US_NAMESAKE_RE.search(text) is not None
    scrubbed = _US_PHRASE_RE.sub(" ", _US_NAMESAKE_RE.sub(" ", text))
    if _NON_US_RE.search(scrubbed):
        return LocationClass.NON_USA
    if namesake or _US_RE.search(text) or _STATE_CODE_RE.search(text):
        return LocationClass.USA
    return LocationClass.UNKNOWN


def is_accepted(location: str | None, usa_only: bool) -> bool:
    """
    Location gate. With usa_only=False everything passes; otherwise only
    text carrying a non-US token is rejected (US, remote and unknown all pass).
    """
    if not usa_only:
        return True
    return classify_location(location) is not LocationClass.NON_USA


def is_recent(posted_at: Any, window_days: int | None, *, now: datetime | None = None) -> bool:
    """
    True iff posted_at falls within the last `window_days` days.
    Missing/unparseable dates are accepted; a window of 0/None disables the check.
    """
    if not window_days or window_days <= 0:
        return True
    dt = parse_timestamp(posted_at)
    if dt is None:
        return True
    cutoff = (now or now_utc()) - timedelta(days=int(window_days))
    return dt >= cutoff
