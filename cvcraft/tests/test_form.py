"""
Tests for the form collector.
"""

import pytest

from cvcraft.exceptions import FormBusyError, UploadError, ValidationError
from cvcraft.form import ResumeForm
from cvcraft.models import ENTRY_MODELS, OPTIONAL_SECTIONS, ResumeRecord, TemplateName
from cvcraft.notify import Notifier


def test_update_scalar():
    form = ResumeForm()
    form.update_scalar('full_name', 'Jane Doe')
    form.update_scalar('template', 'classic')
    assert form.record.full_name == 'Jane Doe'
    assert form.record.template is TemplateName.classic
    with pytest.raises(KeyError):
        form.update_scalar('experience', [])


def test_add_update_remove_entries():
    form = ResumeForm()
    index = form.add_entry('projects')
    form.update_entry('projects', index, 'title', 'Compiler')
    assert [p.title for p in form.record.projects] == ['', 'Compiler']
    assert form.remove_entry('projects', 0)
    assert [p.title for p in form.record.projects] == ['Compiler']
    with pytest.raises(KeyError):
        form.update_entry('projects', 0, 'nope', 'x')
    with pytest.raises(KeyError):
        form.add_entry('hobbies')
    with pytest.raises(IndexError):
        form.update_entry('projects', 5, 'title', 'x')


@pytest.mark.parametrize('section', list(ENTRY_MODELS))
def test_sections_never_drop_below_one_entry(section):
    form = ResumeForm()
    form.add_entry(section)
    assert form.can_remove(section)
    assert form.remove_entry(section, 1)
    assert not form.can_remove(section)
    for _ in range(3):
        assert form.remove_entry(section, 0) is False
    assert len(getattr(form.record, section)) == 1


@pytest.mark.parametrize('section', OPTIONAL_SECTIONS)
def test_toggle_only_flips_the_flag(section):
    form = ResumeForm()
    before = form.record.model_dump()
    assert form.toggle_section(section) is True
    assert form.toggle_section(section) is False
    assert form.record.model_dump() == before


def test_languages_survive_toggle_off_and_on():
    form = ResumeForm()
    form.toggle_section('languages')
    form.update_entry('languages', 0, 'name', 'French')
    form.update_entry('languages', 0, 'proficiency', 'Fluent')
    index = form.add_entry('languages')
    form.update_entry('languages', index, 'name', 'Spanish')
    entries = [l.model_copy() for l in form.record.languages]

    form.toggle_section('languages')
    form.toggle_section('languages')

    assert form.record.section_toggles.languages is True
    assert form.record.languages == entries


def test_toggle_unknown_section():
    with pytest.raises(KeyError):
        ResumeForm().toggle_section('experience')


def test_profile_image_is_stored_as_data_uri(png_bytes):
    form = ResumeForm()
    uri = form.set_profile_image(png_bytes)
    assert uri.startswith('data:image/png;base64,')
    assert form.record.profile_image == uri
    form.clear_profile_image()
    assert form.record.profile_image is None


def test_profile_image_from_path(tmp_path, png_bytes):
    path = tmp_path / 'me.png'
    path.write_bytes(png_bytes)
    form = ResumeForm()
    assert form.set_profile_image_from_path(path).startswith('data:image/png;base64,')


def test_oversized_image_is_rejected_and_previous_kept(png_bytes):
    form = ResumeForm()
    previous = form.set_profile_image(png_bytes)
    six_mb = b'\x89PNG' + b'\0' * (6 * 1024 * 1024)
    with pytest.raises(UploadError) as excinfo:
        form.set_profile_image(six_mb)
    assert excinfo.value.limit == 5 * 1024 * 1024
    assert form.record.profile_image == previous


def test_oversized_image_leaves_empty_image_empty():
    form = ResumeForm()
    with pytest.raises(UploadError):
        form.set_profile_image(b'\0' * (6 * 1024 * 1024))
    assert form.record.profile_image is None


def test_non_image_is_rejected():
    form = ResumeForm()
    with pytest.raises(UploadError):
        form.set_profile_image(b'definitely not an image')
    assert form.record.profile_image is None


@pytest.mark.parametrize(
    'name, email',
    [('Jane Doe', 'jane@x.com'), ('X', 'not-even-an-email'), (' Ana ', 'a@b')],
)
def test_submit_with_name_and_email_calls_handler(name, email):
    form = ResumeForm()
    form.update_scalar('full_name', name)
    form.update_scalar('email', email)
    received = []
    assert form.submit(lambda record: received.append(record) or 'id-1') == 'id-1'
    assert received[0].full_name == name
    assert form.state == 'editing'


@pytest.mark.parametrize(
    'name, email, missing',
    [
        ('', 'jane@x.com', ['full_name']),
        ('Jane', '   ', ['email']),
        ('', '', ['full_name', 'email']),
    ],
)
def test_submit_without_name_or_email_fails(name, email, missing):
    notifier = Notifier()
    form = ResumeForm(notifier=notifier)
    form.update_scalar('full_name', name)
    form.update_scalar('email', email)
    calls = []
    with pytest.raises(ValidationError) as excinfo:
        form.submit(calls.append)
    assert excinfo.value.missing_fields == missing
    assert calls == []
    assert notifier.last.title == 'Missing Information'
    assert notifier.last.is_error


def test_submit_hands_over_a_snapshot(jane):
    form = ResumeForm(jane)
    received = []
    form.submit(received.append)
    form.update_entry('experience', 0, 'title', 'Manager')
    assert received[0].experience[0].title == 'Engineer'


def test_handler_failure_keeps_record_and_state(jane):
    notifier = Notifier()
    form = ResumeForm(jane, notifier=notifier)

    def failing(record):
        assert form.is_submitting
        raise RuntimeError('store is down')

    with pytest.raises(RuntimeError):
        form.submit(failing)
    assert form.state == 'editing'
    assert form.record.full_name == 'Jane Doe'
    assert notifier.last.description == 'store is down'


def test_submit_while_submitting_is_refused(jane):
    form = ResumeForm(jane)

    def reentrant(record):
        with pytest.raises(FormBusyError):
            form.submit(lambda r: None)
        return 'ok'

    assert form.submit(reentrant) == 'ok'


def test_from_record_pads_empty_sections():
    record = ResumeRecord(full_name='A', email='a@b.c')
    form = ResumeForm.from_record(record)
    assert len(form.record.education) == 1
    assert record.education == []
