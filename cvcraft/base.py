"""
Core data types and protocols for the cvcraft package.

Define:
- Viewport, RenderedView: what a template renderer produces
- Identity: who is signed in
- TemplateRenderer: Protocol for layout variants
- RecordStore: Protocol for persistence backends
- SessionAdapter: Protocol for identity providers
- TemplateRegistry: Registry mapping template names to renderer classes
"""

from typing import Protocol, Optional
from dataclasses import dataclass, field

from cvcraft.models import ResumeRecord, StoredResume, TemplateName


@dataclass(frozen=True)
class Viewport:
    """Size of the virtual page the layout is drawn on, in CSS pixels."""

    width_px: int = 794  # A4 at 96 dpi
    height_px: int = 1123


@dataclass(frozen=True)
class RenderedView:
    """A rendered layout: the handle the export pipeline consumes."""

    template: TemplateName
    html: str
    css: str = ''
    viewport: Viewport = field(default_factory=Viewport)
    title: str = ''


@dataclass(frozen=True)
class Identity:
    id: str
    email: Optional[str] = None


class TemplateRenderer(Protocol):
    """Protocol for layout variants."""

    def render(self, record: ResumeRecord, viewport: Viewport) -> RenderedView: ...


class RecordStore(Protocol):
    """Protocol for the remote (or local) record service."""

    def create(self, record: ResumeRecord, owner_id: str) -> str: ...

    def list(self, owner_id: str) -> list[StoredResume]: ...

    def get(
        self, stored_id: str, owner_id: Optional[str] = None
    ) -> Optional[StoredResume]: ...

    def delete(self, stored_id: str, owner_id: Optional[str] = None) -> None: ...


class SessionAdapter(Protocol):
    """Protocol for the identity provider."""

    def current_user(self) -> Optional[Identity]: ...

    def sign_out(self) -> None: ...


class TemplateRegistry:
    """Registry for managing the layout variant implementations."""

    def __init__(self):
        self._renderers: dict[TemplateName, type[TemplateRenderer]] = {}
        self._instances: dict[TemplateName, TemplateRenderer] = {}

    def register(self, name, renderer_class: type[TemplateRenderer]) -> None:
        """Register a renderer class for a template name."""
        name = TemplateName(name)
        self._renderers[name] = renderer_class
        self._instances.pop(name, None)

    def get_renderer(self, name) -> TemplateRenderer:
        """Get a renderer instance for the template name."""
        try:
            name = TemplateName(name)
        except ValueError:
            raise ValueError(f"Unknown template: {name}") from None
        if name not in self._renderers:
            raise ValueError(f"No renderer registered for template: {name.value}")

        # Cache instances for reuse
        if name not in self._instances:
            self._instances[name] = self._renderers[name]()

        return self._instances[name]

    def list_templates(self) -> list[str]:
        """List all registered template names."""
        return [name.value for name in self._renderers]

    def is_registered(self, name) -> bool:
        try:
            return TemplateName(name) in self._renderers
        except ValueError:
            return False


# Global template registry instance
_template_registry = TemplateRegistry()


def register_template(name):
    """Decorator for registering renderer classes."""

    def decorator(renderer_class: type[TemplateRenderer]):
        _template_registry.register(name, renderer_class)
        return renderer_class

    return decorator


def get_template_registry() -> TemplateRegistry:
    """Get the global template registry."""
    return _template_registry
