# app/core/constants.py

from app.models.enums import ApplicationStatus

# ==========================================================
# DOSSIER RULES
# ==========================================================
REQUIRED_ECTS = 30

EDITABLE_STATUSES = frozenset({ApplicationStatus.Draft, ApplicationStatus.Revision})
TERMINAL_STATUSES = frozenset({ApplicationStatus.ValidatedFinal, ApplicationStatus.Rejected})

# ==========================================================
# UPLOADS
# ==========================================================
ALLOWED_FILE_TYPES = ["application/pdf"]
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
SIGNED_URL_TTL_SECONDS = 60

# ==========================================================
# DISPLAY (default label / color mapping, French UI)
# ==========================================================
APPLICATION_STATUS_LABELS = {
    ApplicationStatus.Draft: "Brouillon",
    ApplicationStatus.Submitted: "Soumis",
    ApplicationStatus.Revision: "En révision",
    ApplicationStatus.ValidatedMajor: "Validé par le responsable",
    ApplicationStatus.ValidatedFinal: "Validé (final)",
    ApplicationStatus.Rejected: "Refusé",
}

APPLICATION_STATUS_COLORS = {
    ApplicationStatus.Draft: "bg-gray-100 text-gray-800",
    ApplicationStatus.Submitted: "bg-blue-100 text-blue-800",
    ApplicationStatus.Revision: "bg-yellow-100 text-yellow-800",
    ApplicationStatus.ValidatedMajor: "bg-purple-100 text-purple-800",
    ApplicationStatus.ValidatedFinal: "bg-green-100 text-green-800",
    ApplicationStatus.Rejected: "bg-red-100 text-red-800",
}

UNDEFINED_MAJOR_LABEL = "Non défini"
