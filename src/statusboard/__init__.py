"""Live status dashboard aggregating GitHub, Last.fm, and Steam activity."""

__version__ = "0.1.0"
