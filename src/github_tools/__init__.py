"""GitHub tools exposed over the Model Context Protocol."""

__version__ = "1.0.2"
