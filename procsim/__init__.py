"""Cycle-level Tomasulo out-of-order processor simulator driven by instruction traces."""

__version__ = "0.1.0"

__all__ = ["cli", "config", "report", "simulator", "trace"]