"""Semantic field table and profile value resolution."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from greenhouse_autofiller.core.models import CandidateProfile


class SemanticField(str, Enum):
    """Profile slots the engine knows how to fill."""
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    PHONE = "phone"
    SCHOOL = "school"
    DEGREE = "degree"
    FIELD_OF_STUDY = "fieldOfStudy"
    EDUCATION_END_DATE = "educationEndDate"
    COMPANY = "company"
    JOB_TITLE = "jobTitle"
    START_DATE = "startDate"
    END_DATE = "endDate"
    DESCRIPTION = "description"


@dataclass(frozen=True)
class FieldSpec:
    """How one semantic field shows up in form markup."""
    field: SemanticField
    name_keyword: str
    tag: str = "input"
    label_keyword: Optional[str] = None
    curated_selectors: Tuple[str, ...] = ()

    @property
    def label_text(self) -> str:
        """Human-readable keyword matched against <label> text."""
        return self.label_keyword or self.name_keyword.replace("_", " ")


def _greenhouse_selectors(key: str) -> Tuple[str, ...]:
    # Observed on Greenhouse-hosted application forms
    return (
        f"#{key}",
        f'input[name="job_application[{key}]"]',
        f'input[data-field="{key}"]',
    )


# Order matters: within a pass the first field to claim an element keeps it.
FIELD_TABLE: List[FieldSpec] = [
    FieldSpec(SemanticField.FIRST_NAME, "first_name", curated_selectors=_greenhouse_selectors("first_name")),
    FieldSpec(SemanticField.LAST_NAME, "last_name", curated_selectors=_greenhouse_selectors("last_name")),
    FieldSpec(SemanticField.EMAIL, "email", curated_selectors=_greenhouse_selectors("email")),
    FieldSpec(SemanticField.PHONE, "phone", curated_selectors=_greenhouse_selectors("phone")),
    FieldSpec(SemanticField.SCHOOL, "school"),
    FieldSpec(SemanticField.DEGREE, "degree"),
    FieldSpec(SemanticField.FIELD_OF_STUDY, "field_of_study"),
    FieldSpec(SemanticField.EDUCATION_END_DATE, "education_end_date"),
    FieldSpec(SemanticField.COMPANY, "company"),
    FieldSpec(SemanticField.JOB_TITLE, "job_title", label_keyword="title"),
    FieldSpec(SemanticField.START_DATE, "start_date"),
    FieldSpec(SemanticField.END_DATE, "end_date"),
    FieldSpec(SemanticField.DESCRIPTION, "description", tag="textarea"),
]

FIELD_SPECS: Dict[SemanticField, FieldSpec] = {spec.field: spec for spec in FIELD_TABLE}


def curated_fields() -> List[FieldSpec]:
    """Fields that have a curated selector list."""
    return [spec for spec in FIELD_TABLE if spec.curated_selectors]


T = TypeVar("T")


def _first(group: Sequence[T], read: Callable[[T], str]) -> str:
    return read(group[0]) if group else ""


_RESOLVERS: Dict[SemanticField, Callable[[CandidateProfile], str]] = {
    SemanticField.FIRST_NAME: lambda p: p.first_name,
    SemanticField.LAST_NAME: lambda p: p.last_name,
    SemanticField.EMAIL: lambda p: p.email,
    SemanticField.PHONE: lambda p: p.phone,
    SemanticField.SCHOOL: lambda p: _first(p.education, lambda e: e.school),
    SemanticField.DEGREE: lambda p: _first(p.education, lambda e: e.degree),
    SemanticField.FIELD_OF_STUDY: lambda p: _first(p.education, lambda e: e.field_of_study),
    SemanticField.EDUCATION_END_DATE: lambda p: _first(p.education, lambda e: e.end_date),
    SemanticField.COMPANY: lambda p: _first(p.experience, lambda e: e.company),
    SemanticField.JOB_TITLE: lambda p: _first(p.experience, lambda e: e.title),
    SemanticField.START_DATE: lambda p: _first(p.experience, lambda e: e.start_date),
    SemanticField.END_DATE: lambda p: _first(p.experience, lambda e: e.end_date),
    SemanticField.DESCRIPTION: lambda p: _first(p.experience, lambda e: e.description),
}


def resolve_value(semantic_field: SemanticField, profile: CandidateProfile) -> str:
    """
    Resolve the string to inject for a semantic field.

    Group-derived fields read the first entry of their group and resolve to
    an empty string when the group is empty.

    Args:
        semantic_field: Field to resolve
        profile: Candidate profile snapshot

    Returns:
        Value for the field, possibly empty
    """
    return _RESOLVERS[SemanticField(semantic_field)](profile)
