"""Custom exceptions for GuidedLabeling.

Every error raised on purpose by the labeling core derives from
:class:`GuidedLabelingError`, so callers driving a phase transition can catch
them with a single except clause and leave the previous session state as is.
"""

from __future__ import annotations

from typing import Optional


class GuidedLabelingError(Exception):
    """Base exception for all GuidedLabeling errors."""

    def __init__(self, message: str = "", *args):
        self.message = message
        super().__init__(message, *args)


class MissingReferenceError(GuidedLabelingError):
    """A pixelmap value points at a category that its source does not define."""

    def __init__(self, value: int, *, image_id: Optional[str] = None, label: Optional[str] = None):
        self.value = value
        self.image_id = image_id
        self.label = label
        if label is not None:
            reason = f"category '{label}' (value {value}) is not registered"
        else:
            reason = f"value {value} has no matching category"
        where = f" in image {image_id}" if image_id else ""
        super().__init__(f"Missing category reference{where}: {reason}")


class IncompleteConfigurationError(GuidedLabelingError):
    """The job definition does not describe any certainty metric."""

    def __init__(self, parameter: str = "certainty"):
        self.parameter = parameter
        super().__init__(f"Job definition has no values for parameter '{parameter}'")


class JobNotFoundError(GuidedLabelingError):
    """A job, job image, image version or CLI is absent from the job registry."""

    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Unable to find {what}")


class MissingFolderError(GuidedLabelingError):
    """A child folder needed to launch a job does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Labeling folder has no '{name}' sub-folder")


class TransientNetworkFailure(GuidedLabelingError):
    """A collaborator call (store, job registry, config) failed.

    Nothing in the core retries these; the caller decides.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
