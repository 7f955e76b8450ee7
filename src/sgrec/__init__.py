"""
SoundGraph recommendation core.

Turns listener taste signals into ranked track lists:
weekly discovery, seeded radio and similar-listener lookups.
"""

__version__ = "0.1.0"
