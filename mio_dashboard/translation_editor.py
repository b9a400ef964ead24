"""
Working copy of one key's translations while the operator edits them.

Values are seeded once per active language. Dirty status is always computed
against the seed, so editing a value back to what it was makes it clean again.
Nothing here talks to the API except ``save``, which sends the dirty locales as
a single bulk upsert.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from mio_dashboard.dashboard import Dashboard, MutationOutcome
from mio_dashboard.models import Language, Translation

logger = logging.getLogger(__name__)


class DraftFilter(Enum):
    ALL = "all"
    EMPTY = "empty"
    FILLED = "filled"


def is_blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


@dataclass
class DraftRow:
    locale: str
    language_name: str
    value: str
    original: str
    translation_id: Optional[str] = None

    @property
    def dirty(self) -> bool:
        return self.value != self.original

    @property
    def is_empty(self) -> bool:
        return is_blank(self.value)


class TranslationDraft:
    def __init__(self, key_id: str) -> None:
        self.key_id = key_id
        self._languages: List[Language] = []
        self._original: Dict[str, str] = {}
        self._working: Dict[str, str] = {}
        self._translation_ids: Dict[str, str] = {}

    def seed(self, translations: Iterable[Translation], languages: Iterable[Language]) -> None:
        """
        Reset the draft from server state.

        One entry per active language; a locale with no translation record
        starts as an empty string. Records for inactive or unknown locales are
        ignored.
        """
        self._languages = [language for language in languages if language.is_active]
        by_locale = {translation.locale: translation for translation in translations}
        self._original = {}
        self._translation_ids = {}
        for language in self._languages:
            record = by_locale.get(language.locale)
            self._original[language.locale] = record.value if record else ""
            if record:
                self._translation_ids[language.locale] = record.id
        self._working = dict(self._original)

    @property
    def locales(self) -> List[str]:
        return [language.locale for language in self._languages]

    def value(self, locale: str) -> str:
        return self._working[locale]

    def set_value(self, locale: str, value: str) -> bool:
        """
        Update the working value for ``locale``.

        Returns:
            bool: Whether the locale is dirty after the edit.

        Raises:
            KeyError: if ``locale`` is not one of the draft's active locales.
        """
        if locale not in self._working:
            raise KeyError(f"Locale '{locale}' is not an active language for this key.")
        self._working[locale] = value
        return self._working[locale] != self._original[locale]

    @property
    def dirty_locales(self) -> List[str]:
        return [locale for locale in self.locales if self._working[locale] != self._original[locale]]

    @property
    def has_changes(self) -> bool:
        return bool(self.dirty_locales)

    def changes(self) -> List[Dict[str, str]]:
        """The bulk-upsert payload: exactly the dirty locales."""
        return [{"locale": locale, "value": self._working[locale]} for locale in self.dirty_locales]

    def discard(self) -> None:
        self._working = dict(self._original)

    def mark_saved(self) -> None:
        self._original = dict(self._working)

    async def save(self, dashboard: Dashboard) -> MutationOutcome:
        """Send the dirty locales in one request; on success they become the new seed."""
        changes = self.changes()
        if not changes:
            return MutationOutcome(ok=True, value=[])
        logger.info("Saving %d changed translation(s) for key %s", len(changes), self.key_id)
        outcome = await dashboard.bulk_upsert(self.key_id, changes)
        if outcome.ok:
            for translation in outcome.value or []:
                self._translation_ids[translation.locale] = translation.id
            self.mark_saved()
        return outcome

    def rows(self, view: DraftFilter = DraftFilter.ALL) -> List[DraftRow]:
        rows = [
            DraftRow(
                locale=language.locale,
                language_name=language.name,
                value=self._working[language.locale],
                original=self._original[language.locale],
                translation_id=self._translation_ids.get(language.locale),
            )
            for language in self._languages
        ]
        if view is DraftFilter.EMPTY:
            return [row for row in rows if row.is_empty]
        if view is DraftFilter.FILLED:
            return [row for row in rows if not row.is_empty]
        return rows

    def progress(self) -> Tuple[int, int, int]:
        """(filled, total, percentage) over the working values."""
        total = len(self._working)
        filled = sum(1 for value in self._working.values() if not is_blank(value))
        percentage = round(filled * 100 / total) if total else 0
        return filled, total, percentage

    def missing_locales(self) -> List[str]:
        return [locale for locale in self.locales if is_blank(self._working[locale])]

    def context_for(self, locale: str) -> List[Tuple[str, str]]:
        # Other locales' filled values, shown as reference while translating.
        return [
            (other, self._working[other])
            for other in self.locales
            if other != locale and not is_blank(self._working[other])
        ]
