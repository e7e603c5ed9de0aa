"""External data providers: odds, seed ratings and completed schedules."""
