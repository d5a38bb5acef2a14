"""Schema-driven query builder generator."""

__version__ = "0.1.0"
