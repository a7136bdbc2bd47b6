"""Subjects offered for each grade, and fallback chapter names."""
from edufinder.models import ClassLevel

_MIDDLE_SCHOOL = ["Science", "Mathematics", "English", "Social Science", "Hindi"]
_SECONDARY = _MIDDLE_SCHOOL + ["Information Technology"]
_SENIOR_SECONDARY = [
    "Physics", "Chemistry", "Biology", "Mathematics", "English", "Accountancy",
    "Business Studies", "Economics", "History", "Geography", "Political Science",
    "Computer Science",
]

CLASS_SUBJECTS: dict[ClassLevel, list[str]] = {
    ClassLevel.CLASS_6: _MIDDLE_SCHOOL,
    ClassLevel.CLASS_7: _MIDDLE_SCHOOL,
    ClassLevel.CLASS_8: _MIDDLE_SCHOOL,
    ClassLevel.CLASS_9: _SECONDARY,
    ClassLevel.CLASS_10: _SECONDARY,
    ClassLevel.CLASS_11: _SENIOR_SECONDARY,
    ClassLevel.CLASS_12: _SENIOR_SECONDARY,
}

# Shown when the chapter list cannot be generated.
PLACEHOLDER_CHAPTERS = (
    "Chapter 1: Introduction",
    "Chapter 2: Essential Concepts",
    "Chapter 3: Final Review",
)


def get_subjects(class_level: ClassLevel) -> list[str]:
    return list(CLASS_SUBJECTS.get(class_level, []))
