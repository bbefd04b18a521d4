"""snaprel - release automation for snaps."""

__version__ = "0.1.0"
