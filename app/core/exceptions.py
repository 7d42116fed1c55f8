# app/core/exceptions.py

from typing import Sequence


class WorkflowError(ValueError):
    """Base class for every domain failure raised by the services layer."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(WorkflowError):
    status_code = 404


class PermissionDeniedError(WorkflowError):
    status_code = 403


class PreconditionError(WorkflowError):
    status_code = 400


class DuplicateDossierError(WorkflowError):
    status_code = 409

    def __init__(self, detail: str = "You already have a dossier for this academic year."):
        super().__init__(detail)


class DuplicateEmailError(WorkflowError):
    status_code = 409

    def __init__(self, detail: str = "An account with this email already exists."):
        super().__init__(detail)


class PersistenceError(WorkflowError):
    """The primary write failed; nothing was applied."""

    status_code = 503


class PartialFailureError(WorkflowError):
    """
    A multi-step operation stopped half-way.

    `completed_steps` already took effect and are not rolled back;
    `step` is the one that failed.
    """

    status_code = 502

    def __init__(self, step: str, completed_steps: Sequence[str] = (), detail: str | None = None):
        super().__init__(detail or f"Operation failed at step '{step}'.")
        self.step = step
        self.completed_steps = list(completed_steps)
