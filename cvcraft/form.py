"""Form collector: the one mutable record of an editing session.

The form keeps every repeated section at one entry or more, and leaves entry
data alone when optional sections are toggled, so switching a section off and
on again shows what was typed before.

States: ``editing`` -> ``submitting`` (while the handler runs) -> ``editing``.
"""

import io
import mimetypes
from pathlib import Path
from typing import Any, Callable, Optional, Union

from PIL import Image, UnidentifiedImageError

from cvcraft.config import MAX_IMAGE_BYTES
from cvcraft.exceptions import FormBusyError, UploadError, ValidationError
from cvcraft.logger import get_logger
from cvcraft.models import (
    ENTRY_MODELS,
    OPTIONAL_SECTIONS,
    SCALAR_FIELDS,
    ResumeRecord,
)
from cvcraft.notify import Notifier
from cvcraft.util import to_data_uri

log = get_logger('form')

SubmitHandler = Callable[[ResumeRecord], Any]

FIELD_LABELS = {'full_name': 'name', 'email': 'email'}


def _check_section(section: str) -> None:
    if section not in ENTRY_MODELS:
        raise KeyError(f"Unknown section: {section}")


class ResumeForm:
    """
    Owns an in-progress ResumeRecord and every edit made to it.

    Examples:
        >>> form = ResumeForm()
        >>> form.update_scalar('full_name', 'Jane Doe')
        >>> form.add_entry('experience')
        1
        >>> form.update_entry('experience', 1, 'title', 'Engineer')
        >>> [e.title for e in form.record.experience]
        ['', 'Engineer']
    """

    def __init__(
        self,
        record: Optional[ResumeRecord] = None,
        *,
        notifier: Optional[Notifier] = None,
        max_image_bytes: int = MAX_IMAGE_BYTES,
    ):
        self.record = record if record is not None else ResumeRecord.blank()
        self.notifier = notifier or Notifier()
        self.max_image_bytes = max_image_bytes
        self._submitting = False

    @classmethod
    def from_record(cls, record: ResumeRecord, **kwargs) -> 'ResumeForm':
        """Edit a copy of ``record``; empty sections get their blank row back."""
        copy = record.model_copy(deep=True)
        for section, model in ENTRY_MODELS.items():
            if not getattr(copy, section):
                setattr(copy, section, [model()])
        return cls(copy, **kwargs)

    # ------------------ scalars ------------------ #
    def update_scalar(self, field: str, value: Any) -> None:
        if field not in SCALAR_FIELDS:
            raise KeyError(f"Not a scalar field: {field}")
        setattr(self.record, field, value)

    # ------------------ repeated sections ------------------ #
    def add_entry(self, section: str) -> int:
        """Append a blank entry and return its index."""
        _check_section(section)
        entries = getattr(self.record, section)
        entries.append(ENTRY_MODELS[section]())
        return len(entries) - 1

    def can_remove(self, section: str) -> bool:
        _check_section(section)
        return len(getattr(self.record, section)) > 1

    def remove_entry(self, section: str, index: int) -> bool:
        """Remove an entry; refused (returns False) on the last remaining one."""
        _check_section(section)
        entries = getattr(self.record, section)
        if len(entries) <= 1:
            return False
        del entries[index]
        return True

    def update_entry(self, section: str, index: int, field: str, value: Any) -> None:
        _check_section(section)
        entry = getattr(self.record, section)[index]
        if field not in type(entry).model_fields:
            raise KeyError(f"{section} entries have no field {field!r}")
        setattr(entry, field, value)

    # ------------------ optional sections ------------------ #
    def toggle_section(self, name: str) -> bool:
        """Flip an optional section on or off and return its new state."""
        if name not in OPTIONAL_SECTIONS:
            raise KeyError(f"Not an optional section: {name}")
        toggles = self.record.section_toggles
        setattr(toggles, name, not getattr(toggles, name))
        return getattr(toggles, name)

    # ------------------ profile image ------------------ #
    def set_profile_image(self, data: bytes, mime_type: Optional[str] = None) -> str:
        """Store ``data`` as an inline image and return its data URI.

        Raises UploadError, keeping any previous image, when the payload is
        over the size limit or is not an image.
        """
        if len(data) > self.max_image_bytes:
            limit_mb = self.max_image_bytes / (1024 * 1024)
            raise UploadError(
                f"Image is too large: {len(data)} bytes (limit {limit_mb:g} MB)",
                size=len(data),
                limit=self.max_image_bytes,
            )
        try:
            with Image.open(io.BytesIO(data)) as img:
                detected = Image.MIME.get(img.format or '')
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            raise UploadError(f"Not a readable image: {e}", size=len(data)) from e

        uri = to_data_uri(data, mime_type or detected or 'application/octet-stream')
        self.record.profile_image = uri
        log.debug(f"profile image set ({len(data)} bytes)")
        return uri

    def set_profile_image_from_path(self, path: Union[str, Path]) -> str:
        path = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(path.name)
        return self.set_profile_image(path.read_bytes(), mime_type)

    def clear_profile_image(self) -> None:
        self.record.profile_image = None

    # ------------------ submission ------------------ #
    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def state(self) -> str:
        return 'submitting' if self._submitting else 'editing'

    def snapshot(self) -> ResumeRecord:
        """A deep copy of the record, unaffected by later edits."""
        return self.record.model_copy(deep=True)

    def validate(self) -> None:
        missing = self.record.missing_required_fields()
        if missing:
            raise ValidationError(missing)

    def submit(self, handler: SubmitHandler) -> Any:
        """Validate, then hand a snapshot to ``handler`` and return its result.

        On a validation error the handler is never called. Handler errors are
        reported and re-raised; the record is kept in every case.
        """
        if self._submitting:
            raise FormBusyError("A submission is already in progress")
        try:
            self.validate()
        except ValidationError as e:
            labels = ' and '.join(FIELD_LABELS.get(f, f) for f in e.missing_fields)
            self.notifier.error(
                'Missing Information', f'Please fill in at least your {labels}'
            )
            raise

        self._submitting = True
        log.info(f"submitting resume for {self.record.full_name!r}")
        try:
            return handler(self.snapshot())
        except Exception as e:
            self.notifier.error('Error', str(e) or 'Failed to generate resume. Please try again.')
            raise
        finally:
            self._submitting = False
