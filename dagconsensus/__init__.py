"""Validator weights, vector clocks, fork detection and forkless-cause queries for DAG consensus."""

__version__ = "0.1.0"