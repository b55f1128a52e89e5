"""Leaderboard rebuilt from on-chain event history."""

__version__ = "0.1.0"
