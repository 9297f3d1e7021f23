"""
PowerToe - Multiplayer tic-tac-toe with special cells and powers

An in-memory game engine for 2-4 player tic-tac-toe matches:
- Randomized hidden special cells (traps, power-ups, ...)
- Collectible single-use powers
- Per-match locking registry
- REST/WebSocket front
"""

__version__ = "0.1.0"
