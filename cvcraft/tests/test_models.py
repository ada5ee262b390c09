"""
Unit tests for cvcraft.models
"""

from datetime import datetime, timezone

from cvcraft.models import (
    ENTRY_MODELS,
    Language,
    Proficiency,
    ResumeRecord,
    TemplateName,
    from_row,
    to_row,
)


def test_blank_record_has_one_entry_per_section():
    record = ResumeRecord.blank()
    for section in ENTRY_MODELS:
        assert len(getattr(record, section)) == 1
    assert record.template is TemplateName.modern
    assert record.profile_image is None
    assert not any(record.section_toggles.model_dump().values())


def test_camel_case_keys_are_accepted_and_emitted():
    record = ResumeRecord.model_validate(
        {
            'fullName': 'Jane Doe',
            'email': 'jane@x.com',
            'technicalSkills': 'Python, SQL',
            'sectionToggles': {'languages': True},
            'languages': [{'name': 'French', 'proficiency': 'Fluent'}],
            'template': 'classic',
        }
    )
    assert record.full_name == 'Jane Doe'
    assert record.section_toggles.languages is True
    assert record.languages[0].proficiency is Proficiency.fluent
    data = record.to_json_dict()
    assert data['fullName'] == 'Jane Doe'
    assert data['template'] == 'classic'
    assert data['sectionToggles']['languages'] is True


def test_template_assignment_is_coerced():
    record = ResumeRecord()
    record.template = 'classic'
    assert record.template is TemplateName.classic


def test_filled_entries_use_primary_field():
    record = ResumeRecord(
        languages=[Language(name=''), Language(name='German'), Language(name='  ')]
    )
    assert [l.name for l in record.filled_entries('languages')] == ['German']
    assert ResumeRecord.primary_field('education') == 'degree'


def test_missing_required_fields():
    assert ResumeRecord().missing_required_fields() == ['full_name', 'email']
    assert ResumeRecord(full_name=' ', email='a@b.c').missing_required_fields() == [
        'full_name'
    ]


def test_narrow_row_drops_extra_fields(jane):
    jane.soft_skills = 'Leadership'
    jane.section_toggles.projects = True
    row = to_row(jane, 'user-1', wide=False)
    assert 'extras' not in row
    assert row['skills'] == jane.technical_skills
    assert row['experience'][0]['title'] == 'Engineer'
    # blank education row is not persisted
    assert row['education'] == []

    stored = from_row(
        {**row, 'id': 7, 'created_at': datetime(2024, 1, 1, tzinfo=timezone.utc)}
    )
    assert stored.id == '7'
    assert stored.record.full_name == 'Jane Doe'
    assert stored.record.soft_skills == ''
    assert stored.record.section_toggles.projects is False


def test_wide_row_keeps_everything(jane, png_bytes):
    jane.hobbies = 'Chess'
    jane.section_toggles.hobbies = True
    jane.profile_image = 'data:image/png;base64,AAAA'
    row = to_row(jane, 'user-1')
    stored = from_row({**row, 'id': 'abc', 'created_at': '2024-05-01T10:00:00+00:00'})
    assert stored.record.hobbies == 'Chess'
    assert stored.record.section_toggles.hobbies is True
    assert stored.record.profile_image == 'data:image/png;base64,AAAA'
    assert stored.created_at.year == 2024


def test_from_row_accepts_json_strings():
    stored = from_row(
        {
            'id': 'x',
            'user_id': 'u',
            'created_at': '2024-05-01T10:00:00',
            'full_name': 'A',
            'email': 'a@b.c',
            'experience': '[{"title": "Dev"}]',
            'education': 'not json',
            'template': 'modern',
        }
    )
    assert stored.record.experience[0].title == 'Dev'
    assert stored.record.education == []
