"""Shared pytest fixtures."""

import io

import pytest
from PIL import Image

from cvcraft.base import Identity
from cvcraft.models import Experience, ResumeRecord, TemplateName
from cvcraft.session import LocalSession
from cvcraft.store import SQLiteRecordStore


def make_png(width: int = 40, height: int = 20, color=(30, 58, 95)) -> bytes:
    buf = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def jane():
    """The classic-template record used throughout the examples."""
    return ResumeRecord.blank(
        full_name='Jane Doe',
        email='jane@x.com',
        template=TemplateName.classic,
        experience=[
            Experience(
                title='Engineer',
                company='Acme',
                duration='2020-2022',
                description='Built things',
            )
        ],
    )


@pytest.fixture
def store(tmp_path):
    return SQLiteRecordStore(tmp_path / 'resumes.db')


@pytest.fixture
def signed_in():
    return LocalSession(Identity(id='user-1', email='jane@x.com'))
