"""Personal portfolio tracker with live crypto, equity and metal prices."""

__version__ = "0.1.0"
