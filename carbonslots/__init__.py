"""Find the lowest-carbon time slots from grid carbon intensity forecasts and serve them over HTTP."""

__version__ = "0.1.0"