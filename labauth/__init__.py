"""Identity and user-administration core for the lab portal."""

__version__ = "0.1.0"
