"""
Session Module - Holds the live matches of one server process.

Matches are EPHEMERAL:
- No persistence to database
- Dropped when the last player leaves
- Restart replaces a match in place under the same id
"""

from .manager import MatchRegistry, MatchEntry, SYMBOLS

__all__ = [
    "MatchRegistry",
    "MatchEntry",
    "SYMBOLS",
]
