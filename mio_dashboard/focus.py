import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mio_dashboard.dashboard import Dashboard, MutationOutcome
from mio_dashboard.models import Translation, TranslationStatistics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FocusTask:
    key_id: str
    key_name: str
    feature_name: str
    locale: str


def build_focus_queue(statistics: TranslationStatistics, locale: str) -> List[FocusTask]:
    """One task per key whose missing locales include ``locale``, in report order."""
    return [
        FocusTask(
            key_id=missing.key_id,
            key_name=missing.key_name,
            feature_name=missing.feature_name,
            locale=locale,
        )
        for missing in statistics.missing_translations
        if locale in missing.missing_locales
    ]


class FocusSession:
    """
    Walks a queue of missing translations one at a time.

    A successful submit extends the streak; a skip resets it. Both advance
    the queue. A failed submit leaves the session on the same task.
    """

    def __init__(self, queue: List[FocusTask], dashboard: Dashboard) -> None:
        self.queue = list(queue)
        self.dashboard = dashboard
        self.index = 0
        self.streak = 0
        self.translated = 0
        self.skipped = 0

    @property
    def current(self) -> Optional[FocusTask]:
        if self.index < len(self.queue):
            return self.queue[self.index]
        return None

    @property
    def complete(self) -> bool:
        return self.index >= len(self.queue)

    @property
    def progress(self) -> Tuple[int, int]:
        return min(self.index, len(self.queue)), len(self.queue)

    async def submit(self, value: str) -> Optional[MutationOutcome[Translation]]:
        """
        Create the translation for the current task.

        Returns:
            The mutation outcome, or None when the value is blank or the
            queue is already finished (nothing is sent in either case).
        """
        task = self.current
        if task is None or not value.strip():
            return None
        outcome = await self.dashboard.create_translation(task.key_id, task.locale, value)
        if outcome.ok:
            self.streak += 1
            self.translated += 1
            self.index += 1
            logger.info("Translated %s [%s] (streak %d)", task.key_name, task.locale, self.streak)
        return outcome

    def skip(self) -> None:
        if self.current is None:
            return
        self.streak = 0
        self.skipped += 1
        self.index += 1

    async def context(self) -> List[Translation]:
        """Existing translations of the current key in other locales."""
        task = self.current
        if task is None:
            return []
        translations = await self.dashboard.translations(task.key_id)
        return [t for t in translations if t.locale != task.locale and t.value.strip()]
