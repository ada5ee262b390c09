"""
Public API for the cvcraft package.
Import the main user-facing functions and classes.
"""

from cvcraft.tools import load_record, mk_preview, mk_resume, mk_session, mk_store
from cvcraft.config import ConfigStore, load_config, get_default_config, config_from_env
from cvcraft.base import Identity, RenderedView, Viewport
from cvcraft.models import (
    Achievement,
    Education,
    Experience,
    Language,
    Proficiency,
    Project,
    ResumeRecord,
    SectionToggles,
    StoredResume,
    TemplateName,
)
from cvcraft.exceptions import (
    AuthenticationError,
    CvcraftError,
    ExportError,
    FormBusyError,
    PersistenceError,
    UploadError,
    ValidationError,
)

# Form, rendering and export
from cvcraft.form import ResumeForm
from cvcraft.render import render_resume
from cvcraft.export import DocumentExporter, ExportConfig, export_to_document, fit_to_page

# External collaborators
from cvcraft.store import SQLiteRecordStore, SupabaseRecordStore
from cvcraft.session import LocalSession, SupabaseSession

# Pages
from cvcraft.pages import CreateResumePage, HistoryPage
from cvcraft.notify import Notification, Notifier

__all__ = [
    # Records
    'ResumeRecord',
    'Experience',
    'Education',
    'Project',
    'Achievement',
    'Language',
    'Proficiency',
    'SectionToggles',
    'StoredResume',
    'TemplateName',
    'load_record',
    # Config
    'ConfigStore',
    'load_config',
    'get_default_config',
    'config_from_env',
    # Form, rendering and export
    'ResumeForm',
    'render_resume',
    'RenderedView',
    'Viewport',
    'DocumentExporter',
    'ExportConfig',
    'export_to_document',
    'fit_to_page',
    'mk_preview',
    'mk_resume',
    # Collaborators
    'Identity',
    'SQLiteRecordStore',
    'SupabaseRecordStore',
    'LocalSession',
    'SupabaseSession',
    'mk_session',
    'mk_store',
    # Pages
    'CreateResumePage',
    'HistoryPage',
    'Notification',
    'Notifier',
    # Errors
    'CvcraftError',
    'ValidationError',
    'UploadError',
    'PersistenceError',
    'ExportError',
    'AuthenticationError',
    'FormBusyError',
]
