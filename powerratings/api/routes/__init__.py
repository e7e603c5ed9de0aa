"""
API routes for the ratings engine.

- ratings: current ratings, recalculation, projections, snapshots
- overrides: team name overrides and provider aliases
- backfill: opening-line backfill
"""
