"""A small shell with pipes, subshells, conditional chains and history."""

__version__ = "0.1.0"
__all__ = ["history", "parsing", "shell"]