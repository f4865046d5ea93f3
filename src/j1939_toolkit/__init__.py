"""J1939-84 compliance test toolkit."""

__version__ = "1.0.0"
