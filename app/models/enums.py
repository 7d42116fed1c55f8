from enum import Enum


class ProfileRole(str, Enum):
    Student = "student"
    MajorHead = "major_head"
    International = "international"


class ApplicationStatus(str, Enum):
    Draft = "draft"
    Submitted = "submitted"
    Revision = "revision"
    ValidatedMajor = "validated_major"
    ValidatedFinal = "validated_final"
    Rejected = "rejected"


class CourseLevel(str, Enum):
    M1 = "M1"
    M2 = "M2"
