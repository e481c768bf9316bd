"""hogwatch - find the processes to blame when a host runs hot."""

__version__ = "0.1.0"
