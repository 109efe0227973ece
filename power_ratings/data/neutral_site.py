"""Neutral-site inference from event names when a feed omits the venue flag."""

from typing import Optional

NEUTRAL_SITE_KEYWORDS = [
    "neutral",
    "tournament",
    "championship",
    "ncaa",
    "nit",
    "march madness",
    "final four",
    "sweet sixteen",
    "elite eight",
]

NEUTRAL_SITE_EVENTS = [
    # Early season events
    "maui invitational",
    "battle 4 atlantis",
    "phil knight invitational",
    "phil knight legacy",
    "empire classic",
    "jimmy v classic",
    "champions classic",
    "gavitt tipoff games",
    "big ten acc challenge",
    # Conference tournaments
    "acc tournament",
    "big ten tournament",
    "big 12 tournament",
    "sec tournament",
    "pac-12 tournament",
    "big east tournament",
    # NCAA tournament
    "ncaa tournament",
    "first four",
    "first round",
    "second round",
    "sweet 16",
    "elite 8",
    "final four",
    "national championship",
]


def infer_neutral_site(event_name: Optional[str]) -> Optional[bool]:
    """True when the event name marks a neutral-site game, None when it says nothing.

    Never returns False: the absence of a keyword does not prove a home game.
    """
    if not event_name:
        return None
    text = " ".join(event_name.lower().split())
    if any(event in text for event in NEUTRAL_SITE_EVENTS):
        return True
    words = set(text.replace("-", " ").split())
    for keyword in NEUTRAL_SITE_KEYWORDS:
        if (" " in keyword and keyword in text) or keyword in words:
            return True
    return None
