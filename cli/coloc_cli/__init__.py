"""coLoc terminal client: an offline-capable mirror of the game state."""

__version__ = "0.1.0"
