"""Template selection and rendering.

Current features:
* One renderer class per layout variant, looked up by the record's
  ``template`` through the template registry.
* Rendering is pure: the same record and viewport always give the same view.
"""

from typing import Optional

from cvcraft.base import (
    RenderedView,
    TemplateRenderer,
    Viewport,
    get_template_registry,
)
from cvcraft.models import ResumeRecord, TemplateName
from cvcraft.renderers.html import ClassicTemplate, ModernTemplate


def _initialize_default_templates():
    """Register built-in variants with the global registry."""
    registry = get_template_registry()
    registry.register(TemplateName.modern, ModernTemplate)
    registry.register(TemplateName.classic, ClassicTemplate)


def get_renderer(template) -> TemplateRenderer:
    """Get the renderer for a template name from the registry."""
    registry = get_template_registry()
    if not registry.is_registered(template):
        _initialize_default_templates()
    return registry.get_renderer(template)


def render_resume(
    record: ResumeRecord,
    viewport: Optional[Viewport] = None,
    *,
    template=None,
) -> RenderedView:
    """Render ``record`` with its own template, or ``template`` when given."""
    renderer = get_renderer(template or record.template)
    return renderer.render(record, viewport or Viewport())
