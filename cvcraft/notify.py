"""User-visible notifications (the toasts of the browser app)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from cvcraft.logger import get_logger

log = get_logger('notify')


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ''
    variant: str = 'default'  # default or destructive
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def is_error(self) -> bool:
        return self.variant == 'destructive'


class Notifier:
    """Collects notifications and forwards them to an optional sink.

    Examples:
        >>> n = Notifier()
        >>> n.success('Saved')
        >>> n.last.title
        'Saved'
    """

    def __init__(self, sink: Optional[Callable[[Notification], None]] = None):
        self._sink = sink
        self.history: list[Notification] = []

    def notify(self, title: str, description: str = '', *, variant: str = 'default') -> None:
        note = Notification(title=title, description=description, variant=variant)
        self.history.append(note)
        if note.is_error:
            log.warning(f"{title}: {description}")
        else:
            log.info(f"{title}: {description}")
        if self._sink is not None:
            self._sink(note)

    def success(self, title: str, description: str = '') -> None:
        self.notify(title, description)

    def error(self, title: str, description: str = '') -> None:
        self.notify(title, description, variant='destructive')

    @property
    def last(self) -> Optional[Notification]:
        return self.history[-1] if self.history else None

    def clear(self) -> None:
        self.history.clear()
