"""taskgraph - task dependency and status graph engine."""

__version__ = "0.3.0"
