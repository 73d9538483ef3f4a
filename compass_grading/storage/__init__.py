"""Gradebook storage and the service layer on top of it."""

from .repository import GradebookRepository, YamlGradebookRepository
from .service import GradebookService

__all__ = [
    'GradebookRepository',
    'YamlGradebookRepository',
    'GradebookService',
]
