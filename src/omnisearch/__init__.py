"""Budget-aware search routing across free-tier and paid search providers."""

__version__ = "0.1.0"
