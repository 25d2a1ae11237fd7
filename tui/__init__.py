"""GridCalc terminal front end, section storage and editing session."""

__version__ = "1.0.0"
