"""
Cached reads and mutations over the localization API.

Reads go through the ``QueryCache``. Mutations run one request, then on
success invalidate the read keys the change could affect; on failure they
capture the error message for the caller to show. Nothing is retried.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from mio_dashboard.api_client import ApiClient
from mio_dashboard.errors import DashboardError, error_message
from mio_dashboard.models import (
    AITranslateBatchResponse,
    AITranslateResponse,
    BulkUploadResult,
    Feature,
    KeyItem,
    Language,
    PaginatedTranslations,
    Project,
    Translation,
    TranslationSearchParams,
    TranslationStatistics,
)
from mio_dashboard.query_cache import QueryCache, QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


# --- query keys -------------------------------------------------------------

def projects_key() -> QueryKey:
    return QueryKey.of("projects")


def project_key(project_id: str) -> QueryKey:
    return QueryKey.of("project", project_id)


def features_key(project_id: Optional[str] = None) -> QueryKey:
    return QueryKey.of("features", project_id)


def feature_key(feature_id: str) -> QueryKey:
    return QueryKey.of("feature", feature_id)


def keys_key(feature_id: str) -> QueryKey:
    return QueryKey.of("keys", feature_id)


def key_key(key_id: str) -> QueryKey:
    return QueryKey.of("key", key_id)


def languages_key(project_id: Optional[str] = None) -> QueryKey:
    return QueryKey.of("languages", project_id)


def translations_key(key_id: str) -> QueryKey:
    return QueryKey.of("translations", key_id)


def search_key(params: TranslationSearchParams) -> QueryKey:
    return QueryKey.of(
        "translations-search",
        params.q, params.locale, params.feature_id, params.project_id,
        params.page, params.limit, params.sort_by, params.sort_order,
    )


def statistics_key(feature_id: Optional[str] = None, project_id: Optional[str] = None) -> QueryKey:
    return QueryKey.of("statistics", feature_id, project_id)


ALL_FEATURES = QueryKey.of("features")
ALL_LANGUAGES = QueryKey.of("languages")
ALL_TRANSLATIONS = QueryKey.of("translations")
ALL_SEARCHES = QueryKey.of("translations-search")
ALL_STATISTICS = QueryKey.of("statistics")


# --- mutation bookkeeping ---------------------------------------------------

class EntityStatus(Enum):
    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"
    ERROR = "error"


class EntityStatusTracker:
    """One save status per entity id; an id is always in exactly one state."""

    def __init__(self) -> None:
        self._statuses: Dict[str, EntityStatus] = {}

    def get(self, entity_id: str) -> EntityStatus:
        return self._statuses.get(entity_id, EntityStatus.IDLE)

    def set(self, entity_id: str, status: EntityStatus) -> None:
        if status is EntityStatus.IDLE:
            self._statuses.pop(entity_id, None)
        else:
            self._statuses[entity_id] = status

    def reset(self, entity_id: str) -> None:
        self.set(entity_id, EntityStatus.IDLE)

    def ids_with(self, status: EntityStatus) -> List[str]:
        return [entity_id for entity_id, current in self._statuses.items() if current is status]


@dataclass
class MutationOutcome(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error_message: Optional[str] = None


class Dashboard:
    def __init__(
        self,
        client: ApiClient,
        cache: Optional[QueryCache] = None,
        statuses: Optional[EntityStatusTracker] = None,
    ) -> None:
        self.client = client
        self.cache = cache if cache is not None else QueryCache()
        self.statuses = statuses if statuses is not None else EntityStatusTracker()

    # --- reads --------------------------------------------------------------

    async def projects(self) -> List[Project]:
        return await self.cache.fetch(projects_key(), self.client.list_projects)

    async def project(self, project_id: str) -> Project:
        return await self.cache.fetch(project_key(project_id), lambda: self.client.get_project(project_id))

    async def features(self, project_id: Optional[str] = None) -> List[Feature]:
        return await self.cache.fetch(features_key(project_id), lambda: self.client.list_features(project_id))

    async def feature(self, feature_id: str) -> Feature:
        return await self.cache.fetch(feature_key(feature_id), lambda: self.client.get_feature(feature_id))

    async def keys(self, feature_id: str) -> List[KeyItem]:
        return await self.cache.fetch(keys_key(feature_id), lambda: self.client.list_keys(feature_id))

    async def key(self, key_id: str) -> KeyItem:
        return await self.cache.fetch(key_key(key_id), lambda: self.client.get_key(key_id))

    async def languages(self, project_id: Optional[str] = None) -> List[Language]:
        return await self.cache.fetch(languages_key(project_id), lambda: self.client.list_languages(project_id))

    async def active_languages(self, project_id: Optional[str] = None) -> List[Language]:
        return [language for language in await self.languages(project_id) if language.is_active]

    async def translations(self, key_id: str) -> List[Translation]:
        return await self.cache.fetch(translations_key(key_id), lambda: self.client.get_translations(key_id))

    async def search_translations(self, params: TranslationSearchParams) -> PaginatedTranslations:
        return await self.cache.fetch(search_key(params), lambda: self.client.search_translations(params))

    async def statistics(
        self, feature_id: Optional[str] = None, project_id: Optional[str] = None
    ) -> TranslationStatistics:
        return await self.cache.fetch(
            statistics_key(feature_id, project_id),
            lambda: self.client.get_statistics(feature_id, project_id),
        )

    # --- mutation core ------------------------------------------------------

    async def _mutate(
        self,
        action: Callable[[], Awaitable[T]],
        invalidates: Iterable[QueryKey],
        fallback: str,
        entity_id: Optional[str] = None,
    ) -> MutationOutcome[T]:
        if entity_id:
            self.statuses.set(entity_id, EntityStatus.SAVING)
        try:
            value = await action()
        except DashboardError as exc:
            message = error_message(exc, fallback)
            logger.error("%s: %s", fallback, message)
            if entity_id:
                self.statuses.set(entity_id, EntityStatus.ERROR)
            return MutationOutcome(ok=False, error_message=message)

        for pattern in invalidates:
            self.cache.invalidate(pattern)
        if entity_id:
            self.statuses.set(entity_id, EntityStatus.SAVED)
        return MutationOutcome(ok=True, value=value)

    # --- projects -----------------------------------------------------------

    async def create_project(self, name: str, description: Optional[str] = None) -> MutationOutcome[Project]:
        return await self._mutate(
            lambda: self.client.create_project(name=name, description=description),
            [projects_key()],
            "Failed to create project",
        )

    async def update_project(
        self, project_id: str, name: Optional[str] = None, description: Optional[str] = None
    ) -> MutationOutcome[Project]:
        return await self._mutate(
            lambda: self.client.update_project(project_id, name=name, description=description),
            [projects_key(), project_key(project_id)],
            "Failed to update project",
            entity_id=project_id,
        )

    async def delete_project(self, project_id: str) -> MutationOutcome[None]:
        return await self._mutate(
            lambda: self.client.delete_project(project_id),
            [projects_key()],
            "Failed to delete project",
            entity_id=project_id,
        )

    # --- features -----------------------------------------------------------

    async def create_feature(
        self, name: str, project_id: str, description: Optional[str] = None
    ) -> MutationOutcome[Feature]:
        return await self._mutate(
            lambda: self.client.create_feature(name=name, project_id=project_id, description=description),
            [ALL_FEATURES],
            "Failed to create feature",
        )

    async def update_feature(
        self, feature_id: str, name: Optional[str] = None, description: Optional[str] = None
    ) -> MutationOutcome[Feature]:
        return await self._mutate(
            lambda: self.client.update_feature(feature_id, name=name, description=description),
            [ALL_FEATURES, feature_key(feature_id)],
            "Failed to update feature",
            entity_id=feature_id,
        )

    async def delete_feature(self, feature_id: str) -> MutationOutcome[None]:
        return await self._mutate(
            lambda: self.client.delete_feature(feature_id),
            [ALL_FEATURES],
            "Failed to delete feature",
            entity_id=feature_id,
        )

    # --- keys ---------------------------------------------------------------

    async def create_key(
        self, key: str, feature_id: str, description: Optional[str] = None
    ) -> MutationOutcome[KeyItem]:
        return await self._mutate(
            lambda: self.client.create_key(key=key, feature_id=feature_id, description=description),
            [keys_key(feature_id)],
            "Failed to create key",
        )

    async def update_key(
        self, item: KeyItem, key: Optional[str] = None, description: Optional[str] = None
    ) -> MutationOutcome[KeyItem]:
        return await self._mutate(
            lambda: self.client.update_key(item.id, key=key, description=description),
            [keys_key(item.feature_id), key_key(item.id)],
            "Failed to update key",
            entity_id=item.id,
        )

    async def delete_key(self, item: KeyItem) -> MutationOutcome[None]:
        return await self._mutate(
            lambda: self.client.delete_key(item.id),
            [keys_key(item.feature_id)],
            "Failed to delete key",
            entity_id=item.id,
        )

    # --- languages ----------------------------------------------------------

    async def create_language(
        self, locale: str, name: str, is_active: bool = True, project_id: Optional[str] = None
    ) -> MutationOutcome[Language]:
        return await self._mutate(
            lambda: self.client.create_language(
                locale=locale, name=name, is_active=is_active, project_id=project_id
            ),
            [ALL_LANGUAGES],
            "Failed to add language",
        )

    async def update_language(
        self,
        language_id: str,
        locale: Optional[str] = None,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> MutationOutcome[Language]:
        return await self._mutate(
            lambda: self.client.update_language(language_id, locale=locale, name=name, is_active=is_active),
            [ALL_LANGUAGES],
            "Failed to update language",
            entity_id=language_id,
        )

    async def delete_language(self, language_id: str) -> MutationOutcome[None]:
        return await self._mutate(
            lambda: self.client.delete_language(language_id),
            [ALL_LANGUAGES],
            "Failed to delete language",
            entity_id=language_id,
        )

    # --- translations -------------------------------------------------------

    def _translation_keys(self, key_id: str) -> List[QueryKey]:
        return [translations_key(key_id), ALL_SEARCHES, ALL_STATISTICS]

    async def create_translation(self, key_id: str, locale: str, value: str) -> MutationOutcome[Translation]:
        return await self._mutate(
            lambda: self.client.create_translation(key_id=key_id, locale=locale, value=value),
            self._translation_keys(key_id),
            "Failed to add translation",
        )

    async def update_translation(
        self, translation_id: str, key_id: str, value: str
    ) -> MutationOutcome[Translation]:
        return await self._mutate(
            lambda: self.client.update_translation(translation_id, value),
            self._translation_keys(key_id),
            "Failed to update translation",
            entity_id=translation_id,
        )

    async def delete_translation(self, translation_id: str, key_id: str) -> MutationOutcome[None]:
        return await self._mutate(
            lambda: self.client.delete_translation(translation_id),
            self._translation_keys(key_id),
            "Failed to delete translation",
            entity_id=translation_id,
        )

    async def bulk_upsert(self, key_id: str, changes: List[Dict[str, str]]) -> MutationOutcome[List[Translation]]:
        return await self._mutate(
            lambda: self.client.bulk_upsert_translations(key_id, changes),
            self._translation_keys(key_id),
            "Failed to save translations",
            entity_id=key_id,
        )

    async def bulk_upload(self, feature_id: str, filename: str, data: bytes) -> MutationOutcome[BulkUploadResult]:
        outcome = await self._mutate(
            lambda: self.client.bulk_upload_translations(feature_id, filename, data),
            [ALL_SEARCHES, ALL_STATISTICS],
            "Upload failed",
        )
        if outcome.ok and outcome.value is not None and outcome.value.error:
            return MutationOutcome(ok=False, value=outcome.value, error_message=outcome.value.message or "Upload failed")
        return outcome

    # --- AI translation -----------------------------------------------------

    async def ai_translate_key(self, key_id: str, target_locales: List[str]) -> MutationOutcome[AITranslateResponse]:
        return await self._mutate(
            lambda: self.client.ai_translate_key(key_id, target_locales),
            [translations_key(key_id), ALL_STATISTICS],
            "AI translation failed",
            entity_id=key_id,
        )

    async def ai_translate_batch(
        self,
        feature_id: Optional[str] = None,
        project_id: Optional[str] = None,
        target_locales: Optional[List[str]] = None,
    ) -> MutationOutcome[AITranslateBatchResponse]:
        return await self._mutate(
            lambda: self.client.ai_translate_batch(
                feature_id=feature_id, project_id=project_id, target_locales=target_locales
            ),
            [ALL_FEATURES, ALL_TRANSLATIONS, ALL_STATISTICS],
            "AI batch translation failed",
        )
