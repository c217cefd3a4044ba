"""Browse and install Skater XL custom maps from the terminal."""

__version__ = "0.1.0"