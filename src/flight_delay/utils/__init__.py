"""Shared helpers for the pipeline components."""

from .logger import get_logger

__all__ = ["get_logger"]
