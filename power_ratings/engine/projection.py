"""Spread projection from two neutral-court ratings."""

from decimal import ROUND_FLOOR, Decimal


def round_to_increment(value: float, increment: float) -> float:
    """
    Round to the nearest multiple of ``increment``, halves toward positive infinity.

    Works in decimal so that e.g. 0.145 at hundredths gives 0.15, not the
    binary-float 0.14. A negative half goes up as well: -13.75 at tenths is -13.7.
    """
    step = Decimal(str(increment))
    units = (Decimal(str(value)) / step + Decimal("0.5")).quantize(Decimal("1"), rounding=ROUND_FLOOR)
    return float(units * step) + 0.0


def project_spread(
    home_rating: float,
    away_rating: float,
    hca: float,
    is_neutral_site: bool = False,
    increment: float = 0.1,
) -> float:
    """
    Project the point spread for a matchup from the home team's perspective.

    Args:
        home_rating: Home team's current neutral-court rating
        away_rating: Away team's current neutral-court rating
        hca: Home-court advantage in points
        is_neutral_site: If True, no HCA is applied
        increment: Smallest quoted spread step

    Returns:
        Spread; negative means the home team is favored.
        e.g. home 25, away 20, hca 2.5 -> -7.5
    """
    hca_to_apply = 0.0 if is_neutral_site else hca
    raw_spread = -((home_rating - away_rating) + hca_to_apply)
    return round_to_increment(raw_spread, increment)


def calculate_adjustment(projected_spread: float, closing_spread: float, increment: float = 0.01) -> float:
    """Half the market-vs-projection gap: positive means the away team was undervalued."""
    return round_to_increment((closing_spread - projected_spread) / 2.0, increment)


def format_spread(spread: float) -> str:
    """Display form of a spread: "PK", "-7.5", "+3"."""
    if spread == 0:
        return "PK"
    text = f"{spread:g}"
    return f"+{text}" if spread > 0 else text


def format_rating(rating: float, decimal_places: int = 2) -> str:
    sign = "+" if rating >= 0 else ""
    return f"{sign}{rating:.{decimal_places}f}"
