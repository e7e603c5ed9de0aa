"""
Domain exceptions for the ratings service.

Routes translate these into HTTP errors; batch jobs catch them per game or
per invocation and report them in their result counts.
"""


class RatingsError(Exception):
    """Base class for ratings service errors."""


class RatingsNotInitializedError(RatingsError):
    """No ratings exist for the season and no seed could be loaded."""

    def __init__(self, season: int):
        self.season = season
        super().__init__(f"No ratings found for season {season}")


class SeedProviderError(RatingsError):
    """The rating seed provider returned no usable data."""


class OverrideValidationError(RatingsError):
    """An override or provider alias write was rejected."""


class TeamNotFoundError(RatingsError):
    """A team name could not be resolved to a rated team."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Team not found: {name}")
