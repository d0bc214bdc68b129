"""rootdiff — package set and configuration file diffing for transactional updates."""

__version__ = "0.1.0"
