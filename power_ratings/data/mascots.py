"""Default mascot vocabulary stripped from the end of feed team names.

Odds and schedule feeds append nicknames ("Ohio State Buckeyes"); the ratings
roster does not ("Ohio St."). Multi-word mascots must be listed as phrases.
Callers can pass their own vocabulary to the resolver instead.
"""

from typing import Iterable, List

DEFAULT_MASCOTS: List[str] = [
    # --- A-B ---
    "49ers", "aggies", "ambassadors", "anteaters", "aztecs", "badgers",
    "beacons", "bearcats", "bears", "beavers", "billikens", "bison",
    "blue demons", "blue devils", "bluejays", "bobcats", "boilermakers",
    "bonnies", "broncos", "bruins", "buccaneers", "buckeyes", "buffaloes",
    "bulldogs", "bulls",
    # --- C-D ---
    "cardinals", "catamounts", "cavaliers", "chanticleers", "chippewas",
    "colonials", "commodores", "cornhuskers", "cougars", "cowboys", "coyotes",
    "crimson tide", "crusaders", "cyclones", "demon deacons", "dolphins",
    "dons", "ducks", "dukes",
    # --- E-G ---
    "eagles", "explorers", "falcons", "fighting hawks", "fighting illini",
    "fighting irish", "flames", "flyers", "friars", "gaels", "gamecocks",
    "gators", "gauchos", "golden eagles", "golden flashes", "golden gophers",
    "golden hurricane", "gorillas", "governors", "great danes", "griffins",
    # --- H-K ---
    "hatters", "hawkeyes", "hawks", "highlanders", "hokies", "hoosiers",
    "horned frogs", "hornets", "hoyas", "huskies", "hurricanes", "ichabods",
    "jackrabbits", "jaguars", "jaspers", "jayhawks", "johnnies", "keydets",
    "knights",
    # --- L-M ---
    "lakers", "leathernecks", "leopards", "lobos", "longhorns", "lumberjacks",
    "mastodons", "matadors", "mean green", "miners", "minutemen", "mocs",
    "monarchs", "mountaineers", "musketeers", "mustangs",
    # --- N-R ---
    "nittany lions", "orange", "ospreys", "owls", "paladins", "panthers",
    "patriots", "peacocks", "penguins", "phoenix", "pilots", "pirates",
    "purple eagles", "racers", "ramblers", "rams", "razorbacks", "rebels",
    "red foxes", "red raiders", "red storm", "red wolves", "redbirds",
    "redhawks", "retrievers", "revolutionaries", "roadrunners", "rockets",
    "roos", "royals",
    # --- S ---
    "salukis", "scarlet knights", "screaming eagles", "seawolves",
    "seminoles", "shockers", "skyhawks", "sooners", "spartans", "spiders",
    "sun devils", "sycamores",
    # --- T-Z ---
    "tar heels", "terrapins", "terriers", "thundering herd", "tigers",
    "titans", "toreros", "tritons", "trojans", "utes", "volunteers", "waves",
    "wildcats", "wolf pack", "wolfpack", "wolverines", "yellow jackets",
    "yellowjackets", "zips",
]


def normalize_vocabulary(mascots: Iterable[str]) -> List[str]:
    """Lowercase, de-duplicate and order longest-first so phrases win over single words."""
    seen = set()
    out: List[str] = []
    for m in mascots:
        key = " ".join(str(m).lower().split())
        if key and key not in seen:
            seen.add(key)
            out.append(key)
    return sorted(out, key=lambda s: (-len(s), s))
