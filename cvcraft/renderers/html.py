"""HTML layout variants rendered with Jinja2 templates."""

import os
from collections.abc import Mapping as ABCMapping
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from cvcraft.base import RenderedView, Viewport, register_template
from cvcraft.logger import get_logger
from cvcraft.models import ResumeRecord, TemplateName
from cvcraft.util import initials, skill_level, split_skills, themes_files

log = get_logger('render')


class ThemeRegistry(ABCMapping):
    """Registry for the packaged themes.

    Each theme is a mapping with keys:
        template: str (filename relative to the themes directory)
        css: str (raw CSS text)
    """

    def __init__(self, *, themes_path: str | None = None):
        if themes_path is None:
            themes_path = str(themes_files)
        self._themes_path = themes_path
        self._themes = {}
        for name in TemplateName:
            template = f'{name.value}.html'
            if not os.path.exists(os.path.join(themes_path, template)):
                continue
            css_path = os.path.join(themes_path, f'{name.value}.css')
            css = ''
            if os.path.exists(css_path):
                with open(css_path, 'r', encoding='utf-8') as f:
                    css = f.read()
            self._themes[name.value] = {'template': template, 'css': css}

    def __getitem__(self, theme_name: str) -> dict:
        return self._themes[theme_name]

    def __iter__(self):
        return iter(self._themes)

    def __len__(self) -> int:
        return len(self._themes)

    @property
    def themes_path(self) -> str:
        return self._themes_path


_default_themes: ThemeRegistry | None = None


def _get_default_themes() -> ThemeRegistry:
    global _default_themes
    if _default_themes is None:
        _default_themes = ThemeRegistry()
    return _default_themes


# ---------------------------- section rules ---------------------------- #


def _entries(record: ResumeRecord, section: str) -> list[dict]:
    return [e.model_dump(mode='json') for e in record.filled_entries(section)]


def build_sections(record: ResumeRecord) -> dict[str, Any]:
    """The content both variants draw from, with the inclusion rule applied.

    A repeated section keeps only entries whose primary field is filled in.
    Optional sections (projects, achievements, hobbies, languages) are empty
    when their toggle is off, whatever the entries hold. A section that ends
    up empty is omitted by the templates.
    """
    toggles = record.section_toggles
    projects = _entries(record, 'projects') if toggles.projects else []
    for project in projects:
        project['technologies'] = split_skills(project['technologies'])
    return {
        'summary': record.summary.strip(),
        'experience': _entries(record, 'experience'),
        'education': _entries(record, 'education'),
        'projects': projects,
        'achievements': _entries(record, 'achievements') if toggles.achievements else [],
        'languages': _entries(record, 'languages') if toggles.languages else [],
        'hobbies': record.hobbies.strip() if toggles.hobbies else '',
        'technical_skills': split_skills(record.technical_skills),
        'soft_skills': split_skills(record.soft_skills),
    }


def _contact_items(record: ResumeRecord) -> list[dict]:
    items = [
        ('email', record.email),
        ('phone', record.phone),
        ('location', record.location),
    ]
    return [{'kind': k, 'value': v.strip()} for k, v in items if v.strip()]


class HTMLTemplate:
    """Renders a record to a self-contained HTML page.

    Process:
        * Build the shared context (``build_sections``) plus the variant's
          extras (``extra_context``).
        * Render the variant's Jinja2 template with its stylesheet inlined.
    """

    name: TemplateName

    def __init__(self, *, theme_registry: ThemeRegistry | None = None):
        self._themes = theme_registry or _get_default_themes()
        self._env = Environment(
            loader=FileSystemLoader(self._themes.themes_path),
            autoescape=select_autoescape(['html', 'xml']),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, record: ResumeRecord, viewport: Viewport | None = None) -> RenderedView:
        viewport = viewport or Viewport()
        theme = self._themes[self.name.value]
        css = _page_css(viewport) + theme['css']
        ctx = self.build_context(record)
        html = self._env.get_template(theme['template']).render(
            css=css, viewport=viewport, **ctx
        )
        log.debug(f"rendered {self.name.value} layout for {record.full_name!r}")
        return RenderedView(
            template=self.name,
            html=html,
            css=css,
            viewport=viewport,
            title=record.full_name,
        )

    def build_context(self, record: ResumeRecord) -> dict:
        return {
            'name': record.full_name.strip(),
            'initials': initials(record.full_name),
            'contact': _contact_items(record),
            'photo': record.profile_image,
            'sections': build_sections(record),
            **self.extra_context(record),
        }

    def extra_context(self, record: ResumeRecord) -> dict:
        return {}


def _page_css(viewport: Viewport) -> str:
    return (
        f'@page {{ size: {viewport.width_px}px {viewport.height_px}px; margin: 0; }}\n'
        f'.page {{ width: {viewport.width_px}px; min-height: {viewport.height_px}px; }}\n'
    )


# Sections of the modern main column, in display order
MODERN_MAIN_SECTIONS = ('summary', 'experience', 'projects', 'achievements', 'hobbies')


@register_template(TemplateName.modern)
class ModernTemplate(HTMLTemplate):
    """Two columns: a side panel and a main column with numbered headers."""

    name = TemplateName.modern

    def extra_context(self, record: ResumeRecord) -> dict:
        sections = build_sections(record)
        shown = [key for key in MODERN_MAIN_SECTIONS if sections[key]]
        return {
            'numbers': {key: f'{i:02d}' for i, key in enumerate(shown, 1)},
            'skill_bars': [
                {'name': skill, 'level': skill_level(i, skill)}
                for i, skill in enumerate(sections['technical_skills'])
            ],
        }


@register_template(TemplateName.classic)
class ClassicTemplate(HTMLTemplate):
    """Single centered column with ruled serif headings."""

    name = TemplateName.classic
