"""elcron -- run shell commands when the day-ahead electricity price crosses a threshold."""

__version__ = "0.1.0"
