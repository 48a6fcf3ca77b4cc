"""pwpolicy: configurable password-strength policy evaluation."""

__version__ = "0.1.0"
