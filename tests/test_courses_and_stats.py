import uuid
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest

from app.core.constants import UNDEFINED_MAJOR_LABEL
from app.core.exceptions import NotFoundError, PermissionDeniedError, PreconditionError
from app.models.application import Application
from app.models.enums import ApplicationStatus
from app.services import course_service, stats_service
from app.services.stats_service import DashboardRow


def course_data(**overrides):
    data = {
        "title": "  Machine Learning  ",
        "language": "English",
        "description": "Supervised and unsupervised learning.",
        "web_link": "https://uni.example/courses/ml",
        "level": "M1",
        "start_date": date(2026, 2, 1),
        "end_date": date(2026, 6, 30),
        "local_credits": 5,
        "ects": 6,
        "choice_reason": "Matches my major.",
    }
    data.update(overrides)
    return data


def put_application(gateway, people, status=ApplicationStatus.Draft, **fields) -> Application:
    values = {
        "id": uuid.uuid4(),
        "student_id": people.student.id,
        "major_head_id": people.major_head.id,
        "academic_year_id": next(iter(gateway.years)),
        "status": status,
        "university_name": "Politecnico di Milano",
        "university_city": "Milan",
        "university_country": "Italie",
    }
    values.update(fields)
    application = Application(**values)
    gateway.applications[application.id] = application
    return application


# ------------------------------------------------------------
# STUDENT COURSE LIST
# ------------------------------------------------------------
@pytest.mark.asyncio
async def test_student_adds_course_to_draft(gateway, people):
    application = put_application(gateway, people)

    course = await course_service.add_course(gateway, people.student, application.id, course_data())

    assert course.title == "Machine Learning"
    assert course.is_validated is None
    assert [c.id for c in await gateway.list_courses(application.id)] == [course.id]


@pytest.mark.asyncio
async def test_end_date_before_start_is_refused(gateway, people):
    application = put_application(gateway, people)

    with pytest.raises(PreconditionError):
        await course_service.add_course(
            gateway, people.student, application.id, course_data(end_date=date(2026, 1, 1))
        )
    assert gateway.courses == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status",
    [ApplicationStatus.Submitted, ApplicationStatus.ValidatedMajor, ApplicationStatus.Rejected],
)
async def test_course_list_frozen_outside_draft_and_revision(gateway, people, status):
    application = put_application(gateway, people, status=status)

    with pytest.raises(PreconditionError):
        await course_service.add_course(gateway, people.student, application.id, course_data())


@pytest.mark.asyncio
async def test_course_list_reopens_in_revision(gateway, people):
    application = put_application(gateway, people, status=ApplicationStatus.Revision)
    course = await course_service.add_course(gateway, people.student, application.id, course_data())

    await course_service.delete_course(gateway, people.student, application.id, course.id)
    assert gateway.courses == {}


@pytest.mark.asyncio
async def test_only_the_owner_edits_courses(gateway, people):
    application = put_application(gateway, people)

    with pytest.raises(PermissionDeniedError):
        await course_service.add_course(gateway, people.other_student, application.id, course_data())
    with pytest.raises(PermissionDeniedError):
        await course_service.add_course(gateway, people.major_head, application.id, course_data())


@pytest.mark.asyncio
async def test_validated_course_cannot_be_deleted(gateway, people):
    application = put_application(gateway, people, status=ApplicationStatus.Revision)
    course = await course_service.add_course(gateway, people.student, application.id, course_data())
    course.is_validated = True

    with pytest.raises(PreconditionError):
        await course_service.delete_course(gateway, people.student, application.id, course.id)


@pytest.mark.asyncio
async def test_course_from_another_dossier_is_not_found(gateway, people):
    mine = put_application(gateway, people)
    other = put_application(gateway, people, student_id=people.other_student.id)
    foreign = await course_service.add_course(gateway, people.other_student, other.id, course_data())

    with pytest.raises(NotFoundError):
        await course_service.delete_course(gateway, people.student, mine.id, foreign.id)


# ------------------------------------------------------------
# PER-COURSE REVIEW
# ------------------------------------------------------------
async def submitted_with_course(gateway, people):
    application = put_application(gateway, people)
    course = await course_service.add_course(gateway, people.student, application.id, course_data())
    application.status = ApplicationStatus.Submitted
    return application, course


@pytest.mark.asyncio
async def test_major_head_validates_then_resets_course(gateway, people):
    application, course = await submitted_with_course(gateway, people)

    updated = await course_service.set_course_validation(
        gateway, people.major_head, application.id, course.id, True, rejection_reason="ignored"
    )
    assert updated.is_validated is True
    assert updated.rejection_reason is None

    reset = await course_service.set_course_validation(gateway, people.major_head, application.id, course.id, None)
    assert reset.is_validated is None


@pytest.mark.asyncio
async def test_course_rejection_needs_a_reason(gateway, people):
    application, course = await submitted_with_course(gateway, people)

    with pytest.raises(PreconditionError):
        await course_service.set_course_validation(
            gateway, people.major_head, application.id, course.id, False, rejection_reason="   "
        )

    rejected = await course_service.set_course_validation(
        gateway, people.major_head, application.id, course.id, False, rejection_reason=" Trop avancé "
    )
    assert rejected.is_validated is False
    assert rejected.rejection_reason == "Trop avancé"


@pytest.mark.asyncio
async def test_course_review_is_for_the_assigned_head_while_submitted(gateway, people):
    application, course = await submitted_with_course(gateway, people)

    with pytest.raises(PermissionDeniedError):
        await course_service.set_course_validation(gateway, people.other_head, application.id, course.id, True)
    with pytest.raises(PermissionDeniedError):
        await course_service.set_course_validation(gateway, people.international, application.id, course.id, True)

    application.status = ApplicationStatus.ValidatedMajor
    with pytest.raises(PreconditionError):
        await course_service.set_course_validation(gateway, people.major_head, application.id, course.id, True)


# ------------------------------------------------------------
# DASHBOARD
# ------------------------------------------------------------
@pytest.fixture
def dashboard_data(gateway, people):
    base = datetime(2025, 10, 1, 9, 0, 0)
    specs = [
        (people.student, ApplicationStatus.Submitted, "TU München", "Munich", 1, 5),
        (people.other_student, ApplicationStatus.ValidatedFinal, "KTH", "Stockholm", 2, 3),
        (people.student, ApplicationStatus.Draft, "Universidad de Salamanca", "Salamanca", 3, 1),
    ]
    applications = []
    for student, status, name, city, created, updated in specs:
        applications.append(
            put_application(
                gateway,
                people,
                status=status,
                student_id=student.id,
                university_name=name,
                university_city=city,
                created_at=base + timedelta(days=created),
                updated_at=base + timedelta(days=updated),
            )
        )
    return applications


@pytest.mark.asyncio
async def test_major_head_dashboard_counts_stay_unfiltered(gateway, people, dashboard_data):
    result = await stats_service.dashboard(gateway, people.major_head, status=ApplicationStatus.Submitted)

    assert result["total"] == 3
    assert result["counts"]["submitted"] == 1
    assert result["counts"]["validated_final"] == 1
    assert result["counts"]["revision"] == 0
    assert [row.application.status for row in result["items"]] == [ApplicationStatus.Submitted]


@pytest.mark.asyncio
async def test_dashboard_search_matches_names_and_places(gateway, people, dashboard_data):
    by_city = await stats_service.dashboard(gateway, people.international, search="stockholm")
    by_student = await stats_service.dashboard(gateway, people.international, search="alice")
    by_head = await stats_service.dashboard(gateway, people.international, search="Durand")

    assert [r.application.university_name for r in by_city["items"]] == ["KTH"]
    assert len(by_student["items"]) == 2
    assert len(by_head["items"]) == 3


@pytest.mark.asyncio
async def test_dashboard_sort_options(gateway, people, dashboard_data):
    async def universities(sort_by):
        result = await stats_service.dashboard(gateway, people.international, sort_by=sort_by)
        return [r.application.university_name for r in result["items"]]

    assert await universities("updated_desc") == ["TU München", "KTH", "Universidad de Salamanca"]
    assert await universities("created_asc") == ["TU München", "KTH", "Universidad de Salamanca"]
    assert await universities("created_desc") == ["Universidad de Salamanca", "KTH", "TU München"]
    assert (await universities("name_asc"))[-1] == "KTH"

    with pytest.raises(PreconditionError):
        await universities("random")


@pytest.mark.asyncio
async def test_other_head_sees_nothing(gateway, people, dashboard_data):
    result = await stats_service.dashboard(gateway, people.other_head)
    assert result["total"] == 0
    assert result["items"] == []


# ------------------------------------------------------------
# STATISTICS
# ------------------------------------------------------------
def row(status, university, student_id=None, student_major=None, head_major=None):
    application = SimpleNamespace(
        status=status,
        university_name=university,
        student_id=student_id or uuid.uuid4(),
    )
    return DashboardRow(
        application=application,
        student=SimpleNamespace(major_id=student_major, full_name="S"),
        major_head=SimpleNamespace(major_id=head_major, full_name="H"),
    )


def test_compute_statistics():
    cyber, data = uuid.uuid4(), uuid.uuid4()
    majors = {cyber: "Cybersécurité", data: "Data & IA"}
    same_student = uuid.uuid4()

    rows = [
        row(ApplicationStatus.ValidatedFinal, "KTH", same_student, student_major=cyber),
        row(ApplicationStatus.ValidatedFinal, "KTH", same_student, student_major=cyber),
        row(ApplicationStatus.Submitted, "TU München", head_major=data),
        row(ApplicationStatus.Rejected, "KTH"),
    ]

    stats = stats_service.compute_statistics(rows, majors)

    assert stats["total_applications"] == 4
    assert stats["total_students"] == 3
    assert stats["validation_rate"] == 50
    assert {"status": "draft", "count": 0} not in stats["status_distribution"]
    assert {"status": "validated_final", "count": 2} in stats["status_distribution"]
    assert stats["major_distribution"][0] == {"major": "Cybersécurité", "count": 2}
    assert {"major": UNDEFINED_MAJOR_LABEL, "count": 1} in stats["major_distribution"]
    assert stats["top_universities"][0] == {"university": "KTH", "count": 3}


def test_statistics_on_empty_list():
    stats = stats_service.compute_statistics([], {})
    assert stats["total_applications"] == 0
    assert stats["validation_rate"] == 0
    assert stats["status_distribution"] == []


def test_top_universities_is_capped():
    rows = [row(ApplicationStatus.Draft, f"University {i}") for i in range(15)]
    assert len(stats_service.compute_statistics(rows, {})["top_universities"]) == 10


@pytest.mark.asyncio
async def test_statistics_reserved_to_international(gateway, people, dashboard_data):
    with pytest.raises(PermissionDeniedError):
        await stats_service.international_statistics(gateway, people.major_head)

    stats = await stats_service.international_statistics(gateway, people.international)
    assert stats["total_applications"] == 3
    assert stats["major_distribution"][0]["major"] == "Cybersécurité"
