"""Dispatch metrics module."""

from .prometheus_exporter import REGISTRY, render_latest

__all__ = ["REGISTRY", "render_latest"]
