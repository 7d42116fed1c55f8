# app/services/stats_service.py

from collections import Counter
from dataclasses import dataclass
from typing import Optional

from app.core.constants import UNDEFINED_MAJOR_LABEL
from app.core.exceptions import PermissionDeniedError, PreconditionError
from app.models.enums import ApplicationStatus, ProfileRole
from app.services.application_service import list_visible_applications

SORT_OPTIONS = ("updated_desc", "created_desc", "created_asc", "name_asc")
TOP_UNIVERSITIES = 10


@dataclass
class DashboardRow:
    application: object
    student: Optional[object]
    major_head: Optional[object]


async def load_dashboard_rows(gateway, actor) -> list[DashboardRow]:
    applications = await list_visible_applications(gateway, actor)

    # Same profiles come back for many rows
    profiles: dict = {}

    async def profile(profile_id):
        if profile_id not in profiles:
            profiles[profile_id] = await gateway.get_profile(profile_id)
        return profiles[profile_id]

    rows = []
    for application in applications:
        rows.append(
            DashboardRow(
                application=application,
                student=await profile(application.student_id),
                major_head=await profile(application.major_head_id),
            )
        )
    return rows


# ------------------------------------------------------------
# FILTER / SEARCH / SORT
# ------------------------------------------------------------
def _name(profile) -> str:
    return (profile.full_name or "") if profile else ""


def matches_search(row: DashboardRow, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.strip().lower()
    haystack = (
        _name(row.student),
        row.application.university_city or "",
        row.application.university_name or "",
        _name(row.major_head),
    )
    return any(needle in value.lower() for value in haystack)


def sort_rows(rows: list[DashboardRow], sort_by: str = "updated_desc") -> list[DashboardRow]:
    if sort_by not in SORT_OPTIONS:
        raise PreconditionError(f"Unknown sort option '{sort_by}'.")

    if sort_by == "created_desc":
        return sorted(rows, key=lambda r: r.application.created_at, reverse=True)
    if sort_by == "created_asc":
        return sorted(rows, key=lambda r: r.application.created_at)
    if sort_by == "name_asc":
        return sorted(rows, key=lambda r: _name(r.student).lower())
    return sorted(rows, key=lambda r: r.application.updated_at, reverse=True)


def status_counts(rows: list[DashboardRow]) -> dict:
    counts = Counter(ApplicationStatus(r.application.status).value for r in rows)
    return {status.value: counts.get(status.value, 0) for status in ApplicationStatus}


def filter_rows(
    rows: list[DashboardRow],
    status: Optional[ApplicationStatus] = None,
    search: Optional[str] = None,
    sort_by: str = "updated_desc",
) -> list[DashboardRow]:
    selected = [
        r for r in rows
        if (status is None or ApplicationStatus(r.application.status) == ApplicationStatus(status))
        and matches_search(r, search)
    ]
    return sort_rows(selected, sort_by)


async def dashboard(
    gateway,
    actor,
    status: Optional[ApplicationStatus] = None,
    search: Optional[str] = None,
    sort_by: str = "updated_desc",
) -> dict:
    rows = await load_dashboard_rows(gateway, actor)
    return {
        # counts always describe the unfiltered list
        "counts": status_counts(rows),
        "total": len(rows),
        "items": filter_rows(rows, status=status, search=search, sort_by=sort_by),
    }


# ------------------------------------------------------------
# INTERNATIONAL STATISTICS
# ------------------------------------------------------------
def compute_statistics(rows: list[DashboardRow], majors: dict) -> dict:
    """
    `majors` maps major id -> name. A dossier counts under the student's
    major, else the major head's, else UNDEFINED_MAJOR_LABEL.
    """
    total = len(rows)
    validated = sum(
        1 for r in rows if ApplicationStatus(r.application.status) == ApplicationStatus.ValidatedFinal
    )

    by_status = Counter(ApplicationStatus(r.application.status).value for r in rows)

    by_major: Counter = Counter()
    for r in rows:
        major_id = (r.student.major_id if r.student else None) or (
            r.major_head.major_id if r.major_head else None
        )
        by_major[majors.get(major_id, UNDEFINED_MAJOR_LABEL) if major_id else UNDEFINED_MAJOR_LABEL] += 1

    universities = Counter(r.application.university_name or "Inconnue" for r in rows)

    return {
        "total_applications": total,
        "total_students": len({r.application.student_id for r in rows}),
        "validation_rate": round(validated / total * 100) if total else 0,
        "status_distribution": [
            {"status": status.value, "count": by_status[status.value]}
            for status in ApplicationStatus
            if by_status[status.value] > 0
        ],
        "major_distribution": [
            {"major": name, "count": count} for name, count in by_major.most_common()
        ],
        "top_universities": [
            {"university": name, "count": count}
            for name, count in universities.most_common(TOP_UNIVERSITIES)
        ],
    }


async def international_statistics(gateway, actor) -> dict:
    if ProfileRole(actor.role) != ProfileRole.International:
        raise PermissionDeniedError("Statistics are reserved to the international office.")

    rows = await load_dashboard_rows(gateway, actor)
    majors = {m.id: m.name for m in await gateway.list_majors()}
    return compute_statistics(rows, majors)
