"""
Tests for the record store adapters.
"""

import sqlite3
import time
from unittest.mock import Mock

import pytest
import requests

from cvcraft.exceptions import PersistenceError
from cvcraft.models import ResumeRecord
from cvcraft.store import SQLiteRecordStore, SupabaseRecordStore


class TestSQLiteRecordStore:
    def test_create_assigns_identity(self, store, jane):
        stored_id = store.create(jane, 'user-1')
        stored = store.get(stored_id)
        assert stored.id == stored_id
        assert stored.user_id == 'user-1'
        assert stored.created_at is not None
        assert stored.record.full_name == 'Jane Doe'

    def test_list_is_newest_first_and_per_owner(self, store, jane):
        first = store.create(jane, 'user-1')
        time.sleep(0.001)
        second = store.create(jane.model_copy(update={'full_name': 'Jane Two'}), 'user-1')
        store.create(jane, 'user-2')
        listed = store.list('user-1')
        assert [s.id for s in listed] == [second, first]
        assert [s.record.full_name for s in listed] == ['Jane Two', 'Jane Doe']
        assert store.list('nobody') == []

    def test_wide_schema_round_trip(self, store, jane):
        jane.soft_skills = 'Patience'
        jane.hobbies = 'Chess'
        jane.section_toggles.hobbies = True
        jane.languages[0].name = 'French'
        stored = store.get(store.create(jane, 'user-1'))
        assert stored.record.soft_skills == 'Patience'
        assert stored.record.hobbies == 'Chess'
        assert stored.record.section_toggles.hobbies is True
        assert stored.record.languages[0].name == 'French'

    def test_delete(self, store, jane):
        stored_id = store.create(jane, 'user-1')
        store.delete(stored_id)
        assert store.get(stored_id) is None
        # deleting again is a no-op
        store.delete(stored_id)

    def test_database_errors_become_persistence_errors(self, store, jane, monkeypatch):
        def broken(*args, **kwargs):
            raise sqlite3.OperationalError('disk I/O error')

        monkeypatch.setattr(store, '_connect', broken)
        for call in (
            lambda: store.create(jane, 'user-1'),
            lambda: store.list('user-1'),
            lambda: store.get('x'),
            lambda: store.delete('x'),
        ):
            with pytest.raises(PersistenceError):
                call()

    def test_owner_filter_on_get_and_delete(self, store, jane):
        stored_id = store.create(jane, 'user-1')
        assert store.get(stored_id, owner_id='user-2') is None
        store.delete(stored_id, owner_id='user-2')
        assert store.get(stored_id, owner_id='user-1').id == stored_id
        store.delete(stored_id, owner_id='user-1')
        assert store.get(stored_id) is None

    def test_malformed_rows_become_persistence_errors(self, store, jane):
        store.create(jane, 'user-1')
        with sqlite3.connect(str(store.db_path)) as conn:
            conn.execute("UPDATE resumes SET template = 'fancy'")
        conn.close()
        with pytest.raises(PersistenceError) as excinfo:
            store.list('user-1')
        assert excinfo.value.operation == 'list'


    def test_creates_parent_directory(self, tmp_path):
        SQLiteRecordStore(tmp_path / 'nested' / 'dir' / 'resumes.db')
        assert (tmp_path / 'nested' / 'dir' / 'resumes.db').exists()


def _response(payload=None, error=None):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.side_effect = error
    return response


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.fixture
def remote(http):
    return SupabaseRecordStore(
        'https://demo.supabase.co/', 'anon-key', 'user-jwt', session=http
    )


ROW = {
    'id': 'b7c1',
    'user_id': 'user-1',
    'created_at': '2024-05-01T10:00:00+00:00',
    'full_name': 'Jane Doe',
    'email': 'jane@x.com',
    'phone': '',
    'location': '',
    'summary': None,
    'experience': [{'title': 'Engineer', 'company': 'Acme'}],
    'education': [],
    'skills': 'Python',
    'template': 'classic',
}


class TestSupabaseRecordStore:
    def test_create_sends_narrow_row(self, remote, http, jane):
        http.request.return_value = _response([{'id': 'b7c1'}])
        assert remote.create(jane, 'user-1') == 'b7c1'
        method, url = http.request.call_args.args
        kwargs = http.request.call_args.kwargs
        assert method == 'POST'
        assert url == 'https://demo.supabase.co/rest/v1/resumes'
        assert kwargs['json']['user_id'] == 'user-1'
        assert 'extras' not in kwargs['json']
        assert kwargs['headers']['Authorization'] == 'Bearer user-jwt'
        assert kwargs['headers']['apikey'] == 'anon-key'

    def test_wide_schema_sends_extras(self, http, jane):
        store = SupabaseRecordStore(
            'https://demo.supabase.co', 'k', 't', wide_schema=True, session=http
        )
        http.request.return_value = _response([{'id': 1}])
        assert store.create(jane, 'user-1') == '1'
        assert 'extras' in http.request.call_args.kwargs['json']

    def test_list_orders_newest_first(self, remote, http):
        http.request.return_value = _response([ROW])
        listed = remote.list('user-1')
        params = http.request.call_args.kwargs['params']
        assert params['order'] == 'created_at.desc'
        assert params['user_id'] == 'eq.user-1'
        assert listed[0].record.experience[0].title == 'Engineer'
        assert listed[0].record.summary == ''
        # fields outside the narrow schema come back as defaults
        assert listed[0].record.projects == []

    def test_get_and_delete(self, remote, http):
        http.request.return_value = _response([])
        assert remote.get('missing') is None
        http.request.return_value = _response(None)
        remote.delete('b7c1')
        assert http.request.call_args.args[0] == 'DELETE'
        assert http.request.call_args.kwargs['params'] == {'id': 'eq.b7c1'}

    @pytest.mark.parametrize(
        'failure',
        [
            {'side_effect': requests.ConnectionError('unreachable')},
            {'return_value': _response(error=requests.HTTPError('500 Server Error'))},
        ],
    )
    def test_failures_become_persistence_errors(self, remote, http, jane, failure):
        http.request.configure_mock(**failure)
        with pytest.raises(PersistenceError) as excinfo:
            remote.create(jane, 'user-1')
        assert excinfo.value.operation == 'create'

    def test_requires_url_and_key(self):
        with pytest.raises(PersistenceError):
            SupabaseRecordStore('', '')

    def test_owner_filter_is_sent(self, remote, http):
        http.request.return_value = _response([])
        remote.get('b7c1', owner_id='user-1')
        assert http.request.call_args.kwargs['params']['user_id'] == 'eq.user-1'
        http.request.return_value = _response(None)
        remote.delete('b7c1', owner_id='user-1')
        assert http.request.call_args.kwargs['params'] == {
            'id': 'eq.b7c1',
            'user_id': 'eq.user-1',
        }

    @pytest.mark.parametrize(
        'body',
        [ValueError('Expecting value'), {'message': 'not a list'}, [{'no_id': 1}], []],
    )
    def test_odd_create_bodies_become_persistence_errors(self, remote, http, jane, body):
        response = Mock()
        response.raise_for_status.side_effect = None
        if isinstance(body, Exception):
            response.json.side_effect = body
        else:
            response.json.return_value = body
        http.request.return_value = response
        with pytest.raises(PersistenceError):
            remote.create(jane, 'user-1')

    def test_malformed_rows_become_persistence_errors(self, remote, http):
        http.request.return_value = _response([{**ROW, 'created_at': None}])
        with pytest.raises(PersistenceError):
            remote.list('user-1')
        http.request.return_value = _response([{**ROW, 'template': 'fancy'}])
        with pytest.raises(PersistenceError):
            remote.get('b7c1')
