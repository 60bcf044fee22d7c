"""Background worker classes used by the workflow controller."""

from .AnnotationLoaderWorker import AnnotationLoaderWorker
from .SaveWorker import SaveWorker

__all__ = ["AnnotationLoaderWorker", "SaveWorker"]
