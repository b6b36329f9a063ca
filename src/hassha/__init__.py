"""hassha: live departure board for trains and buses."""

__version__ = "0.1.0"
