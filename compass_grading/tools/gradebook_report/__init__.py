"""Class grade report tool."""

from .cli import build_class_report, main

__all__ = ['build_class_report', 'main']
