"""
Market-adjusted power ratings.

- projection: projected spread from two ratings
- closing_line: closing spread selection (sharp book, retail average)
- team_reconciler: external team names to canonical names
- adjustment_processor: per-game rating updates and snapshots
- ratings_service: recalculation runs against the database
- opening_line_backfiller: opening spreads from historical odds
- override_service: operator-managed team name overrides
"""
