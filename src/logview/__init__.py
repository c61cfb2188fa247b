"""LogView: retrieve, unpack and browse remote diagnostic log bundles."""

__version__ = "0.1.0"
