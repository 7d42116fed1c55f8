# app/services/workflow.py

"""
Dossier state machine.

Pure decision logic, no I/O: every status change in the services layer
goes through `resolve_transition`, which checks the actor's role and
assignment first and then looks the move up in `TRANSITIONS`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.constants import (
    APPLICATION_STATUS_COLORS,
    APPLICATION_STATUS_LABELS,
    EDITABLE_STATUSES,
    TERMINAL_STATUSES,
)
from app.core.exceptions import PermissionDeniedError, PreconditionError
from app.models.enums import ApplicationStatus, ProfileRole


class WorkflowAction(str, Enum):
    Create = "create"
    UploadFile = "upload_file"
    DeleteFile = "delete_file"
    Submit = "submit"
    ValidateMajor = "validate_major"
    RequestRevision = "request_revision"
    ValidateFinal = "validate_final"
    Reject = "reject"


class WebhookEvent(str, Enum):
    ApplicationSubmitted = "application_submitted"
    ApplicationValidatedMajor = "application_validated_major"
    ApplicationValidatedFinal = "application_validated_final"
    ApplicationRejected = "application_rejected"
    NewMessage = "new_message"


@dataclass(frozen=True)
class Transition:
    action: WorkflowAction
    role: ProfileRole
    sources: frozenset
    # None = status unchanged
    target: Optional[ApplicationStatus] = None
    event: Optional[WebhookEvent] = None
    requires_reason: bool = False


TRANSITIONS: dict[WorkflowAction, Transition] = {
    t.action: t
    for t in (
        Transition(
            WorkflowAction.UploadFile, ProfileRole.Student, EDITABLE_STATUSES,
        ),
        Transition(
            WorkflowAction.DeleteFile, ProfileRole.Student, EDITABLE_STATUSES,
        ),
        Transition(
            WorkflowAction.Submit, ProfileRole.Student, EDITABLE_STATUSES,
            target=ApplicationStatus.Submitted,
            event=WebhookEvent.ApplicationSubmitted,
        ),
        Transition(
            WorkflowAction.ValidateMajor, ProfileRole.MajorHead,
            frozenset({ApplicationStatus.Submitted}),
            target=ApplicationStatus.ValidatedMajor,
            event=WebhookEvent.ApplicationValidatedMajor,
        ),
        Transition(
            WorkflowAction.RequestRevision, ProfileRole.MajorHead,
            frozenset({ApplicationStatus.Submitted}),
            target=ApplicationStatus.Revision,
            event=WebhookEvent.NewMessage,
            requires_reason=True,
        ),
        Transition(
            WorkflowAction.ValidateFinal, ProfileRole.International,
            frozenset({ApplicationStatus.ValidatedMajor}),
            target=ApplicationStatus.ValidatedFinal,
            event=WebhookEvent.ApplicationValidatedFinal,
        ),
        Transition(
            WorkflowAction.Reject, ProfileRole.International,
            frozenset({ApplicationStatus.ValidatedMajor}),
            target=ApplicationStatus.Rejected,
            event=WebhookEvent.ApplicationRejected,
            requires_reason=True,
        ),
    )
}

# Prefix of the system-authored message inserted with a reason
REASON_MESSAGE_TEMPLATES = {
    WorkflowAction.RequestRevision: "Révision demandée : {reason}",
    WorkflowAction.Reject: "Dossier refusé par le service international : {reason}",
}


def is_editable(status: ApplicationStatus) -> bool:
    return ApplicationStatus(status) in EDITABLE_STATUSES


def is_terminal(status: ApplicationStatus) -> bool:
    return ApplicationStatus(status) in TERMINAL_STATUSES


def can_access(actor, application) -> bool:
    """Read access: owner student, assigned major head, any international."""
    role = ProfileRole(actor.role)
    if role == ProfileRole.International:
        return True
    if role == ProfileRole.Student:
        return application.student_id == actor.id
    if role == ProfileRole.MajorHead:
        return application.major_head_id == actor.id
    return False


def ensure_access(actor, application) -> None:
    if not can_access(actor, application):
        raise PermissionDeniedError("You are not permitted to access this application.")


def resolve_transition(
    actor,
    application,
    action: WorkflowAction,
    reason: Optional[str] = None,
) -> Transition:
    """
    Validate `action` by `actor` on `application` and return the matching
    transition. Authorization is checked before the status.

    Raises PermissionDeniedError or PreconditionError; never returns for a
    disallowed (status, action, role) triple.
    """
    transition = TRANSITIONS.get(WorkflowAction(action))
    if transition is None:
        raise PreconditionError(f"Action '{action}' is not a dossier transition.")

    ensure_access(actor, application)
    if ProfileRole(actor.role) != transition.role:
        raise PermissionDeniedError(
            f"Role '{ProfileRole(actor.role).value}' is not permitted to {transition.action.value.replace('_', ' ')}."
        )

    current = ApplicationStatus(application.status)
    if current not in transition.sources:
        raise PreconditionError(
            f"Cannot {transition.action.value.replace('_', ' ')} an application in status '{current.value}'."
        )

    if transition.requires_reason and not (reason or "").strip():
        raise PreconditionError("A reason is required for this action.")

    return transition


def allowed_actions(actor, application) -> list[WorkflowAction]:
    """Actions the actor may attempt right now (guards such as file count excluded)."""
    if not can_access(actor, application) or is_terminal(application.status):
        return []
    actions = []
    for action, transition in TRANSITIONS.items():
        if ProfileRole(actor.role) != transition.role:
            continue
        if ApplicationStatus(application.status) in transition.sources:
            actions.append(action)
    return actions


def ensure_can_create(actor) -> None:
    if ProfileRole(actor.role) != ProfileRole.Student:
        raise PermissionDeniedError("Only students can create a dossier.")


def reason_message(action: WorkflowAction, reason: str) -> str:
    return REASON_MESSAGE_TEMPLATES[action].format(reason=reason.strip())


# ----------------------------------------------------------
# PROGRESS DISPLAY
# ----------------------------------------------------------
REJECTED_RANK = -1

STATUS_RANKS = {
    ApplicationStatus.Draft: 0,
    ApplicationStatus.Submitted: 1,
    ApplicationStatus.Revision: 1,  # revision never moves progress back past "submitted"
    ApplicationStatus.ValidatedMajor: 2,
    ApplicationStatus.ValidatedFinal: 3,
    ApplicationStatus.Rejected: REJECTED_RANK,
}

TIMELINE_STEPS = [
    (ApplicationStatus.Draft, "Brouillon"),
    (ApplicationStatus.Submitted, "Soumis"),
    (ApplicationStatus.ValidatedMajor, "Validé Respo"),
    (ApplicationStatus.ValidatedFinal, "Validé Final"),
]


def progress_rank(status: ApplicationStatus) -> int:
    return STATUS_RANKS[ApplicationStatus(status)]


def build_timeline(status: ApplicationStatus) -> dict:
    current = ApplicationStatus(status)
    rank = progress_rank(current)

    if current == ApplicationStatus.Rejected:
        return {"status": current.value, "rank": rank, "is_rejected": True, "is_revision": False, "steps": []}

    return {
        "status": current.value,
        "rank": rank,
        "is_rejected": False,
        "is_revision": current == ApplicationStatus.Revision,
        "steps": [
            {
                "status": step.value,
                "label": label,
                "completed": rank >= index,
                "current": rank == index,
            }
            for index, (step, label) in enumerate(TIMELINE_STEPS)
        ],
    }


@dataclass(frozen=True)
class StatusDisplay:
    """Pluggable label / color mapping for status badges."""

    labels: dict
    colors: dict

    def label(self, status: ApplicationStatus) -> str:
        return self.labels[ApplicationStatus(status)]

    def color(self, status: ApplicationStatus) -> str:
        return self.colors[ApplicationStatus(status)]

    def badge(self, status: ApplicationStatus) -> dict:
        return {"status": ApplicationStatus(status).value, "label": self.label(status), "color": self.color(status)}


def default_status_display() -> StatusDisplay:
    return StatusDisplay(labels=APPLICATION_STATUS_LABELS, colors=APPLICATION_STATUS_COLORS)

