"""
High-level orchestration functions - the main API.

These are the primary user-facing functions that coordinate
the entire pipeline, and the factories that build the external
collaborators from configuration.
"""

from pathlib import Path
from typing import Optional, Union

from cvcraft.base import Identity, RecordStore, SessionAdapter, Viewport
from cvcraft.config import ConfigStore, get_default_config
from cvcraft.export import DocumentExporter, ExportConfig, ExportResult
from cvcraft.models import ResumeRecord
from cvcraft.render import render_resume
from cvcraft.session import LocalSession, SupabaseSession
from cvcraft.store import SQLiteRecordStore, SupabaseRecordStore
from cvcraft.util import RecordSource, ensure_record


def load_record(src: RecordSource) -> ResumeRecord:
    """
    Load a record from a file path, JSON string, dict or record.

    Examples:
        >>> record = load_record({'fullName': 'Jane Doe', 'email': 'jane@x.com'})
        >>> record.full_name
        'Jane Doe'
    """
    return ensure_record(src)


def mk_preview(
    record: RecordSource,
    *,
    template: Optional[str] = None,
    viewport: Optional[Viewport] = None,
    output_path: Union[str, Path, None] = None,
) -> str:
    """Render a record to a standalone HTML page (and save it if asked)."""
    view = render_resume(load_record(record), viewport, template=template)
    if output_path:
        Path(output_path).write_text(view.html, encoding='utf-8')
    return view.html


def mk_resume(
    record: RecordSource,
    *,
    output_dir: Union[str, Path] = '.',
    template: Optional[str] = None,
    mode: str = 'raster',
    scale: float = 2.0,
    viewport: Optional[Viewport] = None,
) -> ExportResult:
    """
    Render a record and export it to ``<Full_Name>_Resume.pdf``.

    Examples:
        >>> result = mk_resume('jane.json', output_dir='out')  # doctest: +SKIP
        >>> result.path.name  # doctest: +SKIP
        'Jane_Doe_Resume.pdf'
    """
    view = render_resume(load_record(record), viewport, template=template)
    exporter = DocumentExporter(ExportConfig(mode=mode, scale=scale))
    return exporter.export(view, output_dir)


# --------------------------------------------------------------------------------------
# Collaborator factories


def _uses_supabase(config: ConfigStore) -> bool:
    return bool(config['supabase_url'] and config['supabase_key'])


def mk_session(config: Optional[ConfigStore] = None) -> SessionAdapter:
    """Supabase Auth when configured, else a local identity (if any)."""
    config = config if config is not None else get_default_config()
    if _uses_supabase(config):
        return SupabaseSession(
            config['supabase_url'], config['supabase_key'], config['access_token']
        )
    user_id = config['user_id']
    return LocalSession(
        Identity(id=user_id, email=config['user_email']) if user_id else None
    )


def mk_store(config: Optional[ConfigStore] = None) -> RecordStore:
    """A Supabase store when configured, else the local SQLite database."""
    config = config if config is not None else get_default_config()
    if _uses_supabase(config):
        return SupabaseRecordStore(
            config['supabase_url'], config['supabase_key'], config['access_token']
        )
    return SQLiteRecordStore(Path(config['db_path']))
