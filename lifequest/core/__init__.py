"""LifeQuest progression & battle engine core."""

__version__ = "0.1.0"
