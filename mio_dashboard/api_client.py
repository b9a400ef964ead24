import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import aiohttp
from aiolimiter import AsyncLimiter

from mio_dashboard.errors import ApiConnectionError, ApiRequestError
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
from mio_dashboard.schemas import (
    BULK_UPLOAD_SCHEMA,
    PAGINATED_SCHEMA,
    RECORD_LIST_SCHEMA,
    RECORD_SCHEMA,
    STATISTICS_SCHEMA,
    validate_payload,
)

logger = logging.getLogger(__name__)


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop fields the caller left unset so PATCH requests only carry changes."""
    return {name: value for name, value in payload.items() if value is not None}


def _server_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, list):
            return "; ".join(str(part) for part in message) or None
        if message:
            return str(message)
    return None


class ApiClient:
    """Thin async wrapper around the localization REST API.

    Every method maps to one endpoint and returns model objects; no business
    logic lives here beyond shaping query parameters and payloads.
    """

    def __init__(
        self,
        *,
        base_url: str,
        request_timeout: float = 8.0,
        max_requests_per_second: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        if not base_url:
            raise ValueError("API base URL is required")
        self._base_url = base_url.rstrip("/")
        self._request_timeout = request_timeout
        self._rate_limiter = AsyncLimiter(max_rate=max_requests_per_second, time_period=1)
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._request_timeout)
            )
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        data: Any = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        session = self._get_session()
        try:
            async with self._rate_limiter:
                async with session.request(method, url, params=params, json=json, data=data) as response:
                    text = await response.text()
                    payload: Any = None
                    if text:
                        try:
                            payload = await response.json(content_type=None)
                        except ValueError:
                            payload = None
                    if response.status >= 400:
                        message = _server_message(payload) or f"Request failed with status {response.status}"
                        logger.error("API Error: %s %s -> %s %s", method, path, response.status, text or message)
                        raise ApiRequestError(response.status, message, text)
                    return payload
        except aiohttp.ClientError as exc:
            logger.error("API Error: %s %s -> %s", method, path, exc)
            raise ApiConnectionError(f"Could not reach API at {self._base_url}: {exc}") from exc
        except asyncio.TimeoutError as exc:
            logger.error("API Error: %s %s timed out after %ss", method, path, self._request_timeout)
            raise ApiConnectionError(f"Request to {path} timed out after {self._request_timeout}s") from exc

    async def _get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        payload = await self._request("GET", path, params=params)
        return validate_payload(payload or [], RECORD_LIST_SCHEMA, path)

    async def _get_record(self, path: str) -> Dict[str, Any]:
        payload = await self._request("GET", path)
        return validate_payload(payload, RECORD_SCHEMA, path)

    async def _send_record(self, method: str, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = await self._request(method, path, json=body)
        return validate_payload(payload, RECORD_SCHEMA, path)

    # --- projects -----------------------------------------------------------

    async def list_projects(self) -> List[Project]:
        return [Project.from_payload(item) for item in await self._get_list("/projects")]

    async def get_project(self, project_id: str) -> Project:
        return Project.from_payload(await self._get_record(f"/projects/{project_id}"))

    async def create_project(self, *, name: str, description: Optional[str] = None) -> Project:
        body = _compact({"name": name, "description": description})
        return Project.from_payload(await self._send_record("POST", "/projects", body))

    async def update_project(
        self, project_id: str, *, name: Optional[str] = None, description: Optional[str] = None
    ) -> Project:
        body = _compact({"name": name, "description": description})
        return Project.from_payload(await self._send_record("PATCH", f"/projects/{project_id}", body))

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", f"/projects/{project_id}")

    # --- features -----------------------------------------------------------

    async def list_features(self, project_id: Optional[str] = None) -> List[Feature]:
        params = {"projectId": project_id} if project_id else None
        return [Feature.from_payload(item) for item in await self._get_list("/features", params)]

    async def get_feature(self, feature_id: str) -> Feature:
        return Feature.from_payload(await self._get_record(f"/features/{feature_id}"))

    async def create_feature(
        self, *, name: str, project_id: str, description: Optional[str] = None
    ) -> Feature:
        body = _compact({"name": name, "description": description, "projectId": project_id})
        return Feature.from_payload(await self._send_record("POST", "/features", body))

    async def update_feature(
        self, feature_id: str, *, name: Optional[str] = None, description: Optional[str] = None
    ) -> Feature:
        body = _compact({"name": name, "description": description})
        return Feature.from_payload(await self._send_record("PATCH", f"/features/{feature_id}", body))

    async def delete_feature(self, feature_id: str) -> None:
        await self._request("DELETE", f"/features/{feature_id}")

    # --- keys ---------------------------------------------------------------

    async def list_keys(self, feature_id: str) -> List[KeyItem]:
        return [KeyItem.from_payload(item) for item in await self._get_list(f"/keys/feature/{feature_id}")]

    async def get_key(self, key_id: str) -> KeyItem:
        return KeyItem.from_payload(await self._get_record(f"/keys/{key_id}"))

    async def create_key(self, *, key: str, feature_id: str, description: Optional[str] = None) -> KeyItem:
        body = _compact({"key": key, "description": description, "featureId": feature_id})
        return KeyItem.from_payload(await self._send_record("POST", "/keys", body))

    async def update_key(
        self, key_id: str, *, key: Optional[str] = None, description: Optional[str] = None
    ) -> KeyItem:
        body = _compact({"key": key, "description": description})
        return KeyItem.from_payload(await self._send_record("PATCH", f"/keys/{key_id}", body))

    async def delete_key(self, key_id: str) -> None:
        await self._request("DELETE", f"/keys/{key_id}")

    # --- languages ----------------------------------------------------------

    async def list_languages(self, project_id: Optional[str] = None) -> List[Language]:
        params = {"projectId": project_id} if project_id else None
        return [Language.from_payload(item) for item in await self._get_list("/languages", params)]

    async def create_language(
        self, *, locale: str, name: str, is_active: bool = True, project_id: Optional[str] = None
    ) -> Language:
        body = _compact({"locale": locale, "name": name, "isActive": is_active, "projectId": project_id})
        return Language.from_payload(await self._send_record("POST", "/languages", body))

    async def update_language(
        self,
        language_id: str,
        *,
        locale: Optional[str] = None,
        name: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Language:
        body = _compact({"locale": locale, "name": name, "isActive": is_active})
        return Language.from_payload(await self._send_record("PATCH", f"/languages/{language_id}", body))

    async def delete_language(self, language_id: str) -> None:
        await self._request("DELETE", f"/languages/{language_id}")

    # --- translations -------------------------------------------------------

    async def get_translations(self, key_id: str) -> List[Translation]:
        return [Translation.from_payload(item) for item in await self._get_list(f"/translations/key/{key_id}")]

    async def search_translations(self, params: TranslationSearchParams) -> PaginatedTranslations:
        payload = await self._request("GET", "/translations/search", params=params.to_query())
        return PaginatedTranslations.from_payload(validate_payload(payload, PAGINATED_SCHEMA, "translation search"))

    async def create_translation(self, *, key_id: str, locale: str, value: str) -> Translation:
        body = {"keyId": key_id, "locale": locale, "value": value}
        return Translation.from_payload(await self._send_record("POST", "/translations", body))

    async def update_translation(self, translation_id: str, value: str) -> Translation:
        return Translation.from_payload(
            await self._send_record("PATCH", f"/translations/{translation_id}", {"value": value})
        )

    async def delete_translation(self, translation_id: str) -> None:
        await self._request("DELETE", f"/translations/{translation_id}")

    async def bulk_upsert_translations(
        self, key_id: str, translations: Iterable[Dict[str, str]]
    ) -> List[Translation]:
        body = {
            "keyId": key_id,
            "translations": [{"locale": t["locale"], "value": t["value"]} for t in translations],
        }
        payload = await self._request("POST", "/translations/bulk-upsert", json=body)
        validate_payload(payload or [], RECORD_LIST_SCHEMA, "bulk upsert")
        return [Translation.from_payload(item) for item in payload or []]

    async def bulk_upload_translations(self, feature_id: str, filename: str, data: bytes) -> BulkUploadResult:
        """Send a CSV file as multipart form data to the bulk-upload endpoint."""
        form = aiohttp.FormData()
        form.add_field("file", data, filename=filename, content_type="text/csv")
        payload = await self._request(
            "POST",
            "/translations/bulk-upload",
            params={"featureId": feature_id},
            data=form,
        )
        return BulkUploadResult.from_payload(validate_payload(payload or {}, BULK_UPLOAD_SCHEMA, "bulk upload"))

    # --- statistics ---------------------------------------------------------

    async def get_statistics(
        self, feature_id: Optional[str] = None, project_id: Optional[str] = None
    ) -> TranslationStatistics:
        params = _compact({"featureId": feature_id, "projectId": project_id}) or None
        payload = await self._request("GET", "/translations/statistics", params=params)
        return TranslationStatistics.from_payload(validate_payload(payload, STATISTICS_SCHEMA, "statistics"))

    # --- AI translation -----------------------------------------------------

    async def ai_translate_key(self, key_id: str, target_locales: List[str]) -> AITranslateResponse:
        body = {"keyId": key_id, "targetLocales": list(target_locales)}
        payload = await self._request("POST", "/translations/ai-translate", json=body)
        return AITranslateResponse.from_payload(payload or {})

    async def ai_translate_batch(
        self,
        *,
        feature_id: Optional[str] = None,
        project_id: Optional[str] = None,
        target_locales: Optional[List[str]] = None,
    ) -> AITranslateBatchResponse:
        body = _compact({"featureId": feature_id, "projectId": project_id, "targetLocales": target_locales})
        payload = await self._request("POST", "/translations/ai-translate-batch", json=body)
        return AITranslateBatchResponse.from_payload(payload or {})
