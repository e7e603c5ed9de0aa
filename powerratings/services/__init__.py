"""
Services module for the ratings engine and its external providers.

This module organizes services into:
- ratings: Rating math, name reconciliation, closing/opening lines, overrides
- providers: External API clients (The Odds API, KenPom, ESPN)
"""
