"""SafeChange CLI: dependency-impact analysis and staged change planning."""

__version__ = "0.3.0"
