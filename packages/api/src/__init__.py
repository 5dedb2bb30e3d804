# This project was developed with assistance from AI tools.
"""Document compliance and reminder engine API."""

__version__ = "0.1.0"
