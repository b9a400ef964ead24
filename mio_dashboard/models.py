"""Records exchanged with the localization API.

The API speaks camelCase JSON; every record here is a plain dataclass with a
``from_payload`` constructor that tolerates absent optional fields.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _opt_str(value: Any) -> Optional[str]:
    return str(value) if value is not None and value != "" else None


@dataclass
class Project:
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            description=_opt_str(data.get("description")),
            is_active=bool(data.get("isActive", True)),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass
class Feature:
    id: str
    name: str
    project_id: str = ""
    description: Optional[str] = None
    total_keys: Optional[int] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Feature":
        total_keys = data.get("totalKeys")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            project_id=str(data.get("projectId") or ""),
            description=_opt_str(data.get("description")),
            total_keys=int(total_keys) if total_keys is not None else None,
        )


@dataclass
class KeyItem:
    id: str
    key: str
    feature_id: str = ""
    description: Optional[str] = None
    # Only present when the key is fetched by id.
    feature: Optional[Feature] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "KeyItem":
        feature_raw = data.get("feature")
        return cls(
            id=str(data["id"]),
            key=str(data.get("key") or ""),
            feature_id=str(data.get("featureId") or ""),
            description=_opt_str(data.get("description")),
            feature=Feature.from_payload(feature_raw) if isinstance(feature_raw, dict) else None,
        )


@dataclass
class Language:
    id: str
    locale: str
    name: str
    is_active: bool = True
    project_id: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Language":
        return cls(
            id=str(data["id"]),
            locale=str(data.get("locale") or ""),
            name=str(data.get("name") or ""),
            is_active=bool(data.get("isActive", False)),
            project_id=_opt_str(data.get("projectId")),
        )


@dataclass
class Translation:
    id: str
    locale: str
    value: str
    key_id: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Translation":
        return cls(
            id=str(data["id"]),
            locale=str(data.get("locale") or ""),
            value=str(data.get("value") or ""),
            key_id=str(data.get("keyId") or ""),
        )


@dataclass
class TranslationListItem:
    id: str
    key_id: str
    key_name: str
    feature_id: str
    feature_name: str
    locale: str
    value: str
    is_reviewed: bool = False
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "TranslationListItem":
        return cls(
            id=str(data["id"]),
            key_id=str(data.get("keyId") or ""),
            key_name=str(data.get("keyName") or ""),
            feature_id=str(data.get("featureId") or ""),
            feature_name=str(data.get("featureName") or ""),
            locale=str(data.get("locale") or ""),
            value=str(data.get("value") or ""),
            is_reviewed=bool(data.get("isReviewed", False)),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass
class PaginationMeta:
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "PaginationMeta":
        total = int(data.get("total") or 0)
        limit = int(data.get("limit") or 0)
        total_pages = data.get("totalPages")
        if total_pages is None:
            # Derived from total and limit when the API leaves it out.
            if limit > 0:
                total_pages = -(-total // limit)
            else:
                total_pages = 1 if total else 0
        return cls(
            total=total,
            page=int(data.get("page") or 1),
            limit=limit,
            total_pages=int(total_pages),
        )


@dataclass
class PaginatedTranslations:
    data: List[TranslationListItem]
    meta: PaginationMeta

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "PaginatedTranslations":
        return cls(
            data=[TranslationListItem.from_payload(item) for item in payload.get("data", [])],
            meta=PaginationMeta.from_payload(payload.get("meta") or {}),
        )


@dataclass
class TranslationSearchParams:
    q: Optional[str] = None
    locale: Optional[str] = None
    feature_id: Optional[str] = None
    project_id: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    def to_query(self) -> Dict[str, str]:
        """Query-string parameters in the API's naming, unset values omitted."""
        pairs = {
            "q": self.q,
            "locale": self.locale,
            "featureId": self.feature_id,
            "projectId": self.project_id,
            "page": self.page,
            "limit": self.limit,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }
        return {name: str(value) for name, value in pairs.items() if value not in (None, "")}


# --- Statistics -------------------------------------------------------------

@dataclass
class MissingTranslation:
    key_id: str
    key_name: str
    feature_id: str
    feature_name: str
    project_id: str = ""
    project_name: str = ""
    missing_locales: List[str] = field(default_factory=list)
    filled_locales: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "MissingTranslation":
        return cls(
            key_id=str(data.get("keyId") or ""),
            key_name=str(data.get("keyName") or ""),
            feature_id=str(data.get("featureId") or ""),
            feature_name=str(data.get("featureName") or ""),
            project_id=str(data.get("projectId") or ""),
            project_name=str(data.get("projectName") or ""),
            missing_locales=[str(locale) for locale in data.get("missingLocales") or []],
            filled_locales=[str(locale) for locale in data.get("filledLocales") or []],
        )


@dataclass
class CompletionByLocale:
    locale: str
    total: int
    filled: int
    percentage: float

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CompletionByLocale":
        return cls(
            locale=str(data.get("locale") or ""),
            total=int(data.get("total") or 0),
            filled=int(data.get("filled") or 0),
            percentage=float(data.get("percentage") or 0),
        )


@dataclass
class CompletionByFeature:
    feature_id: str
    feature_name: str
    total: int
    filled: int
    percentage: float

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "CompletionByFeature":
        return cls(
            feature_id=str(data.get("featureId") or ""),
            feature_name=str(data.get("featureName") or ""),
            total=int(data.get("total") or 0),
            filled=int(data.get("filled") or 0),
            percentage=float(data.get("percentage") or 0),
        )


@dataclass
class RecentlyUpdatedTranslation:
    key_id: str
    key_name: str
    locale: str
    value: str
    updated_at: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "RecentlyUpdatedTranslation":
        return cls(
            key_id=str(data.get("keyId") or ""),
            key_name=str(data.get("keyName") or ""),
            locale=str(data.get("locale") or ""),
            value=str(data.get("value") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass
class MostActiveFeature:
    feature_id: str
    feature_name: str
    translation_count: int

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "MostActiveFeature":
        return cls(
            feature_id=str(data.get("featureId") or ""),
            feature_name=str(data.get("featureName") or ""),
            translation_count=int(data.get("translationCount") or 0),
        )


@dataclass
class DuplicateKey:
    key_name: str
    # (feature_id, feature_name) pairs sharing the key name.
    features: List[Dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "DuplicateKey":
        return cls(
            key_name=str(data.get("keyName") or ""),
            features=[
                {"feature_id": str(f.get("featureId") or ""), "feature_name": str(f.get("featureName") or "")}
                for f in data.get("features") or []
            ],
        )


@dataclass
class TranslationStatistics:
    """Aggregate snapshot computed by the API. Display-only."""
    missing_translations: List[MissingTranslation]
    overall_completion_percentage: float
    completion_by_locale: List[CompletionByLocale]
    completion_by_feature: List[CompletionByFeature]
    empty_value_count: int
    recently_updated: List[RecentlyUpdatedTranslation]
    total_translations: int
    most_active_features: List[MostActiveFeature]
    orphaned_keys_count: int
    duplicate_keys: List[DuplicateKey]
    active_features_with_missing_translations: int

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "TranslationStatistics":
        return cls(
            missing_translations=[MissingTranslation.from_payload(i) for i in data.get("missingTranslations") or []],
            overall_completion_percentage=float(data.get("overallCompletionPercentage") or 0),
            completion_by_locale=[CompletionByLocale.from_payload(i) for i in data.get("completionByLocale") or []],
            completion_by_feature=[CompletionByFeature.from_payload(i) for i in data.get("completionByFeature") or []],
            empty_value_count=int(data.get("emptyValueCount") or 0),
            recently_updated=[RecentlyUpdatedTranslation.from_payload(i) for i in data.get("recentlyUpdated") or []],
            total_translations=int(data.get("totalTranslations") or 0),
            most_active_features=[MostActiveFeature.from_payload(i) for i in data.get("mostActiveFeatures") or []],
            orphaned_keys_count=int(data.get("orphanedKeysCount") or 0),
            duplicate_keys=[DuplicateKey.from_payload(i) for i in data.get("duplicateKeys") or []],
            active_features_with_missing_translations=int(data.get("activeFeaturesWithMissingTranslations") or 0),
        )


# --- Mutation results -------------------------------------------------------

@dataclass
class BulkUploadResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    message: Optional[str] = None
    error: bool = False

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "BulkUploadResult":
        return cls(
            created=int(data.get("created") or 0),
            updated=int(data.get("updated") or 0),
            skipped=int(data.get("skipped") or 0),
            message=_opt_str(data.get("message")),
            error=bool(data.get("error", False)),
        )


@dataclass
class AITranslateResponse:
    success: bool
    translated_count: int
    skipped_count: int
    errors: List[str] = field(default_factory=list)
    translations: List[Translation] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AITranslateResponse":
        return cls(
            success=bool(data.get("success", False)),
            translated_count=int(data.get("translatedCount") or 0),
            skipped_count=int(data.get("skippedCount") or 0),
            errors=[str(e) for e in data.get("errors") or []],
            translations=[Translation.from_payload(t) for t in data.get("translations") or []],
        )


@dataclass
class BatchStatistics:
    total_keys: int = 0
    processed_keys: int = 0
    estimated_time_seconds: float = 0.0


@dataclass
class AITranslateBatchResponse:
    success: bool
    translated_count: int
    skipped_count: int
    errors: List[str] = field(default_factory=list)
    statistics: Optional[BatchStatistics] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AITranslateBatchResponse":
        stats_raw = data.get("statistics")
        statistics = None
        if isinstance(stats_raw, dict):
            statistics = BatchStatistics(
                total_keys=int(stats_raw.get("totalKeys") or 0),
                processed_keys=int(stats_raw.get("processedKeys") or 0),
                estimated_time_seconds=float(stats_raw.get("estimatedTimeSeconds") or 0),
            )
        return cls(
            success=bool(data.get("success", False)),
            translated_count=int(data.get("translatedCount") or 0),
            skipped_count=int(data.get("skippedCount") or 0),
            errors=[str(e) for e in data.get("errors") or []],
            statistics=statistics,
        )
