"""
Page-level orchestration: the create view and the history view.

Each page receives its collaborators (session, record store, notifier)
explicitly. Store and session failures become notifications here; they never
end the editing session.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from cvcraft.base import RecordStore, RenderedView, SessionAdapter, Viewport
from cvcraft.exceptions import AuthenticationError, ExportError, PersistenceError
from cvcraft.export import DocumentExporter, ExportResult
from cvcraft.form import ResumeForm
from cvcraft.logger import get_logger
from cvcraft.models import ResumeRecord, StoredResume
from cvcraft.notify import Notifier
from cvcraft.render import render_resume

log = get_logger('pages')


def _require_user(session: SessionAdapter):
    user = session.current_user()
    if user is None:
        raise AuthenticationError("User not authenticated")
    return user


class CreateResumePage:
    """
    Form submission -> persistence -> preview -> download.

    Examples:
        >>> page = CreateResumePage(session, store)  # doctest: +SKIP
        >>> page.submit(form)  # doctest: +SKIP
        >>> page.download('out/')  # doctest: +SKIP
    """

    def __init__(
        self,
        session: SessionAdapter,
        store: RecordStore,
        *,
        notifier: Optional[Notifier] = None,
        exporter: Optional[DocumentExporter] = None,
        viewport: Optional[Viewport] = None,
    ):
        self.session = session
        self.store = store
        self.notifier = notifier or Notifier()
        self.exporter = exporter or DocumentExporter()
        self.viewport = viewport or Viewport()
        self.generated: Optional[ResumeRecord] = None
        self.stored_id: Optional[str] = None
        self.is_generating = False

    def generate(self, record: ResumeRecord) -> Optional[str]:
        """Persist a submitted record and keep it for preview.

        Returns the stored id, or None when the user is signed out or the
        store fails (both reported as notifications).
        """
        self.is_generating = True
        try:
            user = _require_user(self.session)
            stored_id = self.store.create(record, user.id)
        except (AuthenticationError, PersistenceError) as e:
            self.notifier.error(
                'Error', str(e) or 'Failed to generate resume. Please try again.'
            )
            return None
        finally:
            self.is_generating = False

        self.generated = record
        self.stored_id = stored_id
        self.notifier.success(
            'Resume Generated!', 'Your professional resume is ready and saved.'
        )
        return stored_id

    def submit(self, form: ResumeForm) -> Optional[str]:
        """Submit ``form`` with this page as its handler."""
        return form.submit(self.generate)

    def preview(self) -> Optional[RenderedView]:
        if self.generated is None:
            return None
        return render_resume(self.generated, self.viewport)

    def download(self, output_dir: Union[str, Path] = '.') -> ExportResult:
        try:
            return self.exporter.export(self.preview(), output_dir)
        except ExportError as e:
            self.notifier.error('Download failed', str(e))
            raise

    def close_preview(self) -> None:
        self.generated = None
        self.stored_id = None


@dataclass(frozen=True)
class HistoryItem:
    """What the history list shows for one stored resume."""

    id: str
    full_name: str
    created: str
    summary: str
    template: str
    experience_count: int

    @classmethod
    def from_stored(cls, stored: StoredResume) -> 'HistoryItem':
        record = stored.record
        return cls(
            id=stored.id,
            full_name=record.full_name,
            created=format_date(stored.created_at),
            summary=record.summary or 'No summary provided',
            template=record.template.value,
            experience_count=len(record.experience),
        )


def format_date(dt: datetime) -> str:
    """
    >>> format_date(datetime(2024, 3, 7))
    'Mar 7, 2024'
    """
    return f'{dt:%b} {dt.day}, {dt.year}'


class HistoryPage:
    """List, view and delete a user's stored resumes."""

    def __init__(
        self,
        session: SessionAdapter,
        store: RecordStore,
        *,
        notifier: Optional[Notifier] = None,
        viewport: Optional[Viewport] = None,
    ):
        self.session = session
        self.store = store
        self.notifier = notifier or Notifier()
        self.viewport = viewport or Viewport()
        self.resumes: list[StoredResume] = []
        self.loading = False
        self.error: Optional[str] = None

    def refresh(self) -> list[StoredResume]:
        """Re-fetch the list. On failure the list is empty and ``error`` is set."""
        self.loading = True
        self.error = None
        try:
            user = _require_user(self.session)
            self.resumes = self.store.list(user.id)
        except (AuthenticationError, PersistenceError) as e:
            self.resumes = []
            self.error = str(e)
            self.notifier.error('Error', 'Failed to load resume history.')
        finally:
            self.loading = False
        return self.resumes

    @property
    def items(self) -> list[HistoryItem]:
        return [HistoryItem.from_stored(s) for s in self.resumes]

    @property
    def is_empty(self) -> bool:
        return not self.loading and self.error is None and not self.resumes

    def view(self, stored_id: str) -> ResumeRecord:
        """The record behind one of the signed-in user's history entries.

        Raises AuthenticationError when signed out and KeyError when the user
        has no resume with this id.
        """
        user = _require_user(self.session)
        for stored in self.resumes:
            if stored.id == stored_id and stored.user_id == user.id:
                return stored.record
        stored = self.store.get(stored_id, owner_id=user.id)
        if stored is None:
            raise KeyError(f"No stored resume with id {stored_id}")
        return stored.record

    def preview(self, stored_id: str) -> RenderedView:
        return render_resume(self.view(stored_id), self.viewport)

    def delete(self, stored_id: str) -> bool:
        try:
            user = _require_user(self.session)
            if self.store.get(stored_id, owner_id=user.id) is None:
                raise PersistenceError('delete', f"no resume {stored_id} for {user.id}")
            self.store.delete(stored_id, owner_id=user.id)
        except (AuthenticationError, PersistenceError) as e:
            log.error(str(e))
            self.notifier.error('Error', 'Failed to delete resume.')
            return False
        self.notifier.success(
            'Resume deleted', 'The resume has been removed from your history.'
        )
        self.refresh()
        return True
