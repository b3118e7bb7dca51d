"""Article enhancement pipeline: reference discovery, acquisition and rewriting."""

__version__ = "1.0.0"
