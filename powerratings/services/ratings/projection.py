"""
Spread projection from power ratings.

Spreads are expressed from the home team's perspective: negative means the
home team is favored. A rating is "points better than average", so the
home spread is the away rating minus the home rating, minus home-court
advantage when the game is not on a neutral floor.
"""


def project_spread(
    home_rating: float,
    away_rating: float,
    hca: float,
    is_neutral_site: bool = False,
) -> float:
    """
    Projected home spread for a matchup.

    Examples:
        >>> project_spread(10.0, 8.0, 2.5)
        -4.5
        >>> project_spread(10.0, 8.0, 2.5, is_neutral_site=True)
        -2.0
    """
    home_edge = 0.0 if is_neutral_site else hca
    return (away_rating - home_rating) - home_edge
