"""Build and run a Cargo project's tests across a matrix of feature flags and platforms, and report the results."""

__version__ = "0.1.0"