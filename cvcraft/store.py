"""
Record store adapters: where submitted resumes are persisted.

Both adapters implement the RecordStore protocol (create / list / get /
delete). Records have no identity until stored; the store assigns ``id`` and
``created_at``.

Persisted layout: the hosted ``resumes`` table only has the narrow columns
(see ``cvcraft.models.NARROW_COLUMNS``). The local SQLite store always keeps
the rest in an ``extras`` JSON column; the Supabase adapter does so only when
created with ``wide_schema=True``.
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import requests

from cvcraft.exceptions import PersistenceError
from cvcraft.logger import get_logger
from cvcraft.models import ResumeRecord, StoredResume, from_row, to_row

log = get_logger('store')

DEFAULT_TIMEOUT = 10


def _by_id(stored_id: str, owner_id: Optional[str]) -> tuple[str, tuple]:
    if owner_id is None:
        return "id = ?", (stored_id,)
    return "id = ? AND user_id = ?", (stored_id, owner_id)


def _convert_rows(operation: str, rows: list) -> List[StoredResume]:
    """Rows -> StoredResume, reporting a malformed row as a store failure."""
    try:
        return [from_row(row) for row in rows]
    except (ValueError, KeyError, TypeError) as e:
        log.error(f"{operation}: malformed resume row: {e}")
        raise PersistenceError(operation, f"malformed resume row: {e}") from e


class SQLiteRecordStore:
    """
    Keep resumes in a local SQLite database.

    Examples:
        >>> store = SQLiteRecordStore(Path('/tmp/resumes.db'))  # doctest: +SKIP
        >>> stored_id = store.create(record, owner_id='user-1')  # doctest: +SKIP
        >>> [s.record.full_name for s in store.list('user-1')]  # doctest: +SKIP
        ['Jane Doe']
    """

    def __init__(self, db_path: Path):
        """
        Initialize the store.

        Args:
            db_path: Path to the SQLite database (created if missing)
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize database schema."""
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS resumes (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    full_name TEXT NOT NULL,
                    email TEXT NOT NULL,
                    phone TEXT,
                    location TEXT,
                    summary TEXT,
                    experience TEXT,
                    education TEXT,
                    skills TEXT,
                    template TEXT NOT NULL,
                    extras TEXT
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_user_created
                ON resumes(user_id, created_at)
            """)
            conn.commit()
        finally:
            conn.close()

    def create(self, record: ResumeRecord, owner_id: str) -> str:
        row = to_row(record, owner_id, wide=True)
        stored_id = str(uuid.uuid4())
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            conn = self._connect()
            try:
                conn.execute(
                    """
                    INSERT INTO resumes (
                        id, user_id, created_at, full_name, email, phone, location,
                        summary, experience, education, skills, template, extras
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        stored_id, owner_id, created_at, row['full_name'], row['email'],
                        row['phone'], row['location'], row['summary'],
                        json.dumps(row['experience']), json.dumps(row['education']),
                        row['skills'], row['template'], json.dumps(row['extras']),
                    ),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError('create', str(e)) from e
        log.info(f"stored resume {stored_id} for {owner_id}")
        return stored_id

    def list(self, owner_id: str) -> List[StoredResume]:
        """Stored resumes of ``owner_id``, newest first."""
        try:
            conn = self._connect()
            try:
                rows = conn.execute(
                    "SELECT * FROM resumes WHERE user_id = ? "
                    "ORDER BY created_at DESC, rowid DESC",
                    (owner_id,),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError('list', str(e)) from e
        return _convert_rows('list', [dict(row) for row in rows])

    def get(
        self, stored_id: str, owner_id: Optional[str] = None
    ) -> Optional[StoredResume]:
        """The stored resume with this id (and owner, when given), or None."""
        query, params = _by_id(stored_id, owner_id)
        try:
            conn = self._connect()
            try:
                row = conn.execute(f"SELECT * FROM resumes WHERE {query}", params).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError('get', str(e)) from e
        return _convert_rows('get', [dict(row)])[0] if row else None

    def delete(self, stored_id: str, owner_id: Optional[str] = None) -> None:
        """Delete a stored resume; with ``owner_id``, only if that user owns it."""
        query, params = _by_id(stored_id, owner_id)
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(f"DELETE FROM resumes WHERE {query}", params)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise PersistenceError('delete', str(e)) from e
        if cursor.rowcount == 0:
            log.warning(f"no resume with id {stored_id}; nothing deleted")
        else:
            log.info(f"deleted resume {stored_id}")


class SupabaseRecordStore:
    """
    Persist resumes in a hosted Supabase ``resumes`` table over its REST API.

    Args:
        url: Project URL, e.g. https://xyz.supabase.co
        key: The project's anon (publishable) key
        access_token: The signed-in user's JWT; row-level security uses it
        wide_schema: Also send the ``extras`` column (the table must have it)
    """

    TABLE = 'resumes'

    def __init__(
        self,
        url: str,
        key: str,
        access_token: Optional[str] = None,
        *,
        wide_schema: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not url or not key:
            raise PersistenceError('connect', 'Supabase url and key are required')
        self._endpoint = f"{url.rstrip('/')}/rest/v1/{self.TABLE}"
        self._key = key
        self._access_token = access_token or key
        self.wide_schema = wide_schema
        self._timeout = timeout
        self._http = session or requests.Session()

    def _headers(self, **extra) -> dict:
        return {
            'apikey': self._key,
            'Authorization': f'Bearer {self._access_token}',
            'Content-Type': 'application/json',
            **extra,
        }

    def _request(self, operation: str, method: str, **kwargs) -> requests.Response:
        try:
            response = self._http.request(
                method, self._endpoint, timeout=self._timeout, **kwargs
            )
            response.raise_for_status()
        except requests.RequestException as e:
            log.error(f"{operation} failed: {e}")
            raise PersistenceError(operation, str(e)) from e
        return response

    @staticmethod
    def _rows(operation: str, response: requests.Response) -> list:
        try:
            rows = response.json()
        except ValueError as e:
            raise PersistenceError(operation, f"invalid response body: {e}") from e
        if not isinstance(rows, list):
            raise PersistenceError(operation, f"expected a list of rows, got {rows!r}")
        return rows

    @staticmethod
    def _owner_params(params: dict, owner_id: Optional[str]) -> dict:
        if owner_id is not None:
            params['user_id'] = f'eq.{owner_id}'
        return params

    def create(self, record: ResumeRecord, owner_id: str) -> str:
        row = to_row(record, owner_id, wide=self.wide_schema)
        response = self._request(
            'create',
            'POST',
            json=row,
            headers=self._headers(Prefer='return=representation'),
        )
        created = self._rows('create', response)
        try:
            stored_id = str(created[0]['id'])
        except (IndexError, KeyError, TypeError) as e:
            raise PersistenceError('create', 'store returned no row id') from e
        log.info(f"stored resume {stored_id} for {owner_id}")
        return stored_id

    def list(self, owner_id: str) -> List[StoredResume]:
        response = self._request(
            'list',
            'GET',
            params={
                'select': '*',
                'user_id': f'eq.{owner_id}',
                'order': 'created_at.desc',
            },
            headers=self._headers(),
        )
        return _convert_rows('list', self._rows('list', response))

    def get(
        self, stored_id: str, owner_id: Optional[str] = None
    ) -> Optional[StoredResume]:
        response = self._request(
            'get',
            'GET',
            params=self._owner_params({'select': '*', 'id': f'eq.{stored_id}'}, owner_id),
            headers=self._headers(),
        )
        rows = self._rows('get', response)
        return _convert_rows('get', rows[:1])[0] if rows else None

    def delete(self, stored_id: str, owner_id: Optional[str] = None) -> None:
        self._request(
            'delete',
            'DELETE',
            params=self._owner_params({'id': f'eq.{stored_id}'}, owner_id),
            headers=self._headers(),
        )
        log.info(f"deleted resume {stored_id}")
