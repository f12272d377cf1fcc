"""Word Chains editorial engine: candidate validation and daily scheduling."""

__version__ = "1.0.0"
