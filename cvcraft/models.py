"""Pydantic models for resume records.

The attribute names are snake_case; every model also accepts and emits the
camelCase keys used by the form's JSON shape (``fullName``, ``sectionToggles``,
...), so a record file written by hand or exported from the browser app
validates as-is.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TemplateName(str, Enum):
    modern = 'modern'
    classic = 'classic'


class Proficiency(str, Enum):
    basic = 'Basic'
    intermediate = 'Intermediate'
    fluent = 'Fluent'
    native = 'Native'


class _RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )


class Experience(_RecordModel):
    title: str = ''
    company: str = ''
    duration: str = Field('', description='e.g. Jan 2020 - Present')
    description: str = ''


class Education(_RecordModel):
    degree: str = ''
    institution: str = ''
    year: str = ''


class Project(_RecordModel):
    title: str = ''
    description: str = ''
    technologies: str = Field('', description='Comma-separated, e.g. Python, Redis')


class Achievement(_RecordModel):
    title: str = ''
    description: str = ''


class Language(_RecordModel):
    name: str = ''
    proficiency: Proficiency = Proficiency.intermediate


class SectionToggles(_RecordModel):
    projects: bool = False
    achievements: bool = False
    hobbies: bool = False
    languages: bool = False


# Repeated-entry sections, their entry model, and the field that decides
# whether an entry counts as filled in.
ENTRY_MODELS: dict[str, type[_RecordModel]] = {
    'experience': Experience,
    'education': Education,
    'projects': Project,
    'achievements': Achievement,
    'languages': Language,
}
PRIMARY_FIELDS = {
    'experience': 'title',
    'education': 'degree',
    'projects': 'title',
    'achievements': 'title',
    'languages': 'name',
}
OPTIONAL_SECTIONS = ('projects', 'achievements', 'hobbies', 'languages')
SCALAR_FIELDS = (
    'full_name',
    'email',
    'phone',
    'location',
    'summary',
    'technical_skills',
    'soft_skills',
    'hobbies',
    'template',
)
REQUIRED_FIELDS = ('full_name', 'email')


class ResumeRecord(_RecordModel):
    """A single resume submission, in progress or persisted."""

    full_name: str = ''
    email: str = ''
    phone: str = ''
    location: str = ''
    summary: str = ''
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    technical_skills: str = Field('', description='Comma-separated')
    soft_skills: str = Field('', description='Comma-separated')
    projects: list[Project] = Field(default_factory=list)
    achievements: list[Achievement] = Field(default_factory=list)
    hobbies: str = ''
    languages: list[Language] = Field(default_factory=list)
    template: TemplateName = TemplateName.modern
    profile_image: str | None = Field(
        None, description='Inline image as a data: URI'
    )
    section_toggles: SectionToggles = Field(default_factory=SectionToggles)

    @classmethod
    def blank(cls, **fields) -> 'ResumeRecord':
        """A fresh record with one empty entry in every repeated section."""
        record = cls(**fields)
        for section, model in ENTRY_MODELS.items():
            if not getattr(record, section):
                setattr(record, section, [model()])
        return record

    @staticmethod
    def primary_field(section: str) -> str:
        return PRIMARY_FIELDS[section]

    def filled_entries(self, section: str) -> list:
        """Entries of ``section`` whose primary field is not blank."""
        key = PRIMARY_FIELDS[section]
        return [e for e in getattr(self, section) if getattr(e, key).strip()]

    def missing_required_fields(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f).strip()]

    def to_json_dict(self) -> dict:
        """The camelCase JSON shape of the record."""
        return self.model_dump(mode='json', by_alias=True)


class StoredResume(BaseModel):
    """A record as returned by a record store."""

    id: str
    user_id: str
    created_at: datetime
    record: ResumeRecord


# --------------------------------------------------------------------------------------
# Row conversion at the record-store boundary

NARROW_COLUMNS = (
    'full_name',
    'email',
    'phone',
    'location',
    'summary',
    'experience',
    'education',
    'skills',
    'template',
)
EXTRA_FIELDS = (
    'soft_skills',
    'projects',
    'achievements',
    'hobbies',
    'languages',
    'profile_image',
    'section_toggles',
)


def to_row(record: ResumeRecord, owner_id: str, *, wide: bool = True) -> dict:
    """Map a record to the persisted column layout.

    The narrow layout keeps only the columns of the hosted ``resumes`` table;
    ``wide`` adds an ``extras`` mapping holding everything else.
    """
    data = record.model_dump(mode='json')
    row = {
        'user_id': owner_id,
        'full_name': data['full_name'],
        'email': data['email'],
        'phone': data['phone'],
        'location': data['location'],
        'summary': data['summary'],
        'experience': [
            e.model_dump(mode='json') for e in record.filled_entries('experience')
        ],
        'education': [
            e.model_dump(mode='json') for e in record.filled_entries('education')
        ],
        'skills': data['technical_skills'],
        'template': data['template'],
    }
    if wide:
        row['extras'] = {k: data[k] for k in EXTRA_FIELDS}
    return row


def _maybe_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return None
    return value


def from_row(row: Mapping[str, Any]) -> StoredResume:
    """Rebuild a stored record from a persisted row (narrow or wide)."""
    experience = _maybe_json(row.get('experience'))
    education = _maybe_json(row.get('education'))
    extras = _maybe_json(row.get('extras')) or {}
    record = ResumeRecord(
        full_name=row.get('full_name') or '',
        email=row.get('email') or '',
        phone=row.get('phone') or '',
        location=row.get('location') or '',
        summary=row.get('summary') or '',
        experience=experience if isinstance(experience, list) else [],
        education=education if isinstance(education, list) else [],
        technical_skills=row.get('skills') or '',
        template=row.get('template') or TemplateName.modern,
        **{k: v for k, v in extras.items() if k in EXTRA_FIELDS and v is not None},
    )
    return StoredResume(
        id=str(row['id']),
        user_id=str(row.get('user_id') or ''),
        created_at=row['created_at'],
        record=record,
    )
