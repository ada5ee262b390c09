"""
Utilities for external dependencies and general helpers.
"""

import base64
import hashlib
import json
import os
import re
from importlib.resources import files
from pathlib import Path
from typing import Mapping, Union

import yaml  # pip install PyYAML
from pydantic import ValidationError as PydanticValidationError

proj_files = files('cvcraft')
themes_files = proj_files / 'themes'


def _load_json_file(path: str) -> dict:
    """Load a JSON file from the given path."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_yaml(yaml_path: str):
    """
    Loads a YAML file using PyYAML.
    This works in Python 3.7+ because dicts preserve insertion order.
    """
    with open(yaml_path, 'r', encoding='utf-8') as file:
        # Use safe_load for security reasons.
        return yaml.safe_load(file)


def load_record_file(path: Union[str, Path]) -> dict:
    """Load a JSON or YAML mapping, chosen by file extension."""
    path = str(Path(path).expanduser())
    if path.endswith('.json'):
        data = _load_json_file(path)
    elif path.endswith('.yaml') or path.endswith('.yml'):
        data = load_yaml(path)
    else:
        raise ValueError(f'Unsupported file type: {path}')
    if not isinstance(data, Mapping):
        raise TypeError(f'{path} does not contain a mapping')
    return data


def _merge_dicts(base: dict, override: dict) -> dict:
    """Merge two dicts shallowly, with override taking precedence."""
    result = base.copy()
    result.update(override)
    return result


# --------------------------------------------------------------------------------------
# Records

JsonContentStr = str  # JSON string
PathStr = str  # filesystem path
RecordSource = Union[PathStr, JsonContentStr, Path, Mapping]


def extract_friendly_errors(error_obj: PydanticValidationError):
    """
    Yield ``(field, message)`` pairs from a pydantic ValidationError.

    The field is the dotted location, e.g. ``experience.0.title``.
    """
    for error in error_obj.errors():
        field = '.'.join(str(part) for part in error['loc']) or 'root'
        yield field, error['msg']


def validation_friendly_errors_string(error_obj: PydanticValidationError) -> str:
    return '\n'.join(
        f"Error in field '{field}': {message}"
        for field, message in extract_friendly_errors(error_obj)
    )


def ensure_record(src: RecordSource):
    """
    Get a ResumeRecord from various sources
    (record instance, json/yaml file, json string, dict, ...)
    """
    from cvcraft.models import ResumeRecord

    if isinstance(src, ResumeRecord):
        return src
    if isinstance(src, Path):
        src = str(src.expanduser())
    if isinstance(src, str):
        if os.path.exists(src):
            content = load_record_file(src)
        else:
            try:
                content = json.loads(src)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON content provided: {e}")
    elif isinstance(src, Mapping):
        content = src
    else:
        raise TypeError(
            f"Record source must be a dict or a valid JSON string/filename: {src}"
        )
    return ResumeRecord.model_validate(dict(content))


# --------------------------------------------------------------------------------------
# Rendering helpers


def split_skills(text: str) -> list[str]:
    """Split comma-delimited skills into display chips.

    Chips are trimmed and empty ones dropped; order and duplicates are kept.

    >>> split_skills('Python, SQL,, Python ')
    ['Python', 'SQL', 'Python']
    """
    return [s.strip() for s in (text or '').split(',') if s.strip()]


def skill_level(position: int, skill: str, *, low: int = 70, high: int = 95) -> int:
    """Decorative fill percentage for a skill bar.

    A pure function of the skill and its position, so re-rendering never
    changes the bars.

    >>> skill_level(0, 'Python') == skill_level(0, 'Python')
    True
    >>> 70 <= skill_level(3, 'Go') <= 95
    True
    """
    digest = hashlib.sha1(f'{position}:{skill}'.encode('utf-8')).hexdigest()
    return low + int(digest[:8], 16) % (high - low + 1)


def document_filename(full_name: str, ext: str = 'pdf') -> str:
    """
    The export filename for a name: whitespace runs and characters that are
    unsafe in filenames (path separators included) each become one ``_``.
    Surrounding whitespace is stripped first, so ``' Jane'`` gives
    ``Jane_Resume.pdf`` rather than ``_Jane_Resume.pdf``.

    >>> document_filename('Jane  Doe')
    'Jane_Doe_Resume.pdf'
    >>> document_filename('AC/DC Fan')
    'AC_DC_Fan_Resume.pdf'
    >>> document_filename('../x/evil')
    '.._x_evil_Resume.pdf'
    """
    stem = re.sub(r'[\s\\/:*?"<>|\x00]+', '_', full_name.strip())
    return f'{stem}_Resume.{ext}'



def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def initials(full_name: str) -> str:
    """
    >>> initials('Jane Mary Doe')
    'JD'
    """
    parts = full_name.split()
    if not parts:
        return ''
    if len(parts) == 1:
        return parts[0][0].upper()
    return (parts[0][0] + parts[-1][0]).upper()
