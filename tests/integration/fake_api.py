"""
In-memory stand-in for the localization REST API, served with aiohttp.web.

Every request is recorded in ``requests`` as (method, path) so tests can tell
whether a read was served from the cache or went over the wire. Individual
routes can be made to fail through ``failures``.
"""
import csv
import io
import itertools
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from aiohttp import web


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class FakeLocalizationApi:

    def __init__(self) -> None:
        self.projects: Dict[str, Dict[str, Any]] = {}
        self.features: Dict[str, Dict[str, Any]] = {}
        self.keys: Dict[str, Dict[str, Any]] = {}
        self.languages: Dict[str, Dict[str, Any]] = {}
        self.translations: Dict[str, Dict[str, Any]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.uploads: List[Dict[str, str]] = []
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self._ids = itertools.count(1)

    # --- seeding helpers ----------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def add_project(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        record = {"id": self._next_id("p"), "name": name, "description": description,
                  "isActive": True, "createdAt": _now(), "updatedAt": _now()}
        self.projects[record["id"]] = record
        return record

    def add_feature(self, project_id: str, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        record = {"id": self._next_id("f"), "name": name, "description": description, "projectId": project_id}
        self.features[record["id"]] = record
        return record

    def add_key(self, feature_id: str, key: str, description: Optional[str] = None) -> Dict[str, Any]:
        record = {"id": self._next_id("k"), "key": key, "description": description, "featureId": feature_id}
        self.keys[record["id"]] = record
        return record

    def add_language(self, project_id: str, locale: str, name: str, is_active: bool = True) -> Dict[str, Any]:
        record = {"id": self._next_id("l"), "locale": locale, "name": name,
                  "isActive": is_active, "projectId": project_id}
        self.languages[record["id"]] = record
        return record

    def add_translation(self, key_id: str, locale: str, value: str) -> Dict[str, Any]:
        record = {"id": self._next_id("t"), "keyId": key_id, "locale": locale, "value": value,
                  "isReviewed": False, "createdAt": _now(), "updatedAt": _now()}
        self.translations[record["id"]] = record
        return record

    def seed_auth_example(self) -> Dict[str, Dict[str, Any]]:
        """Project "Mio" with feature "Auth", key login.title (en=Login, id empty)."""
        project = self.add_project("Mio")
        feature = self.add_feature(project["id"], "Auth")
        key = self.add_key(feature["id"], "login.title")
        english = self.add_language(project["id"], "en", "English")
        indonesian = self.add_language(project["id"], "id", "Indonesian")
        translation = self.add_translation(key["id"], "en", "Login")
        return {"project": project, "feature": feature, "key": key,
                "en": english, "id": indonesian, "translation": translation}

    def count(self, method: str, path: str) -> int:
        return sum(1 for request in self.requests if request == (method, path))

    def translation_for(self, key_id: str, locale: str) -> Optional[Dict[str, Any]]:
        return next((t for t in self.translations.values()
                     if t["keyId"] == key_id and t["locale"] == locale), None)

    def _upsert(self, key_id: str, locale: str, value: str) -> Tuple[Dict[str, Any], bool]:
        existing = self.translation_for(key_id, locale)
        if existing is not None:
            existing["value"] = value
            existing["updatedAt"] = _now()
            return existing, False
        return self.add_translation(key_id, locale, value), True

    def _project_of_key(self, key: Dict[str, Any]) -> str:
        return self.features[key["featureId"]]["projectId"]

    def _active_locales(self, project_id: str) -> List[str]:
        return [l["locale"] for l in self.languages.values()
                if l["isActive"] and l.get("projectId") == project_id]

    # --- application --------------------------------------------------------

    def make_app(self) -> web.Application:
        app = web.Application(middlewares=[self._middleware])
        r = app.router
        r.add_get("/projects", self.list_projects)
        r.add_post("/projects", self.create_project)
        r.add_get("/projects/{id}", self.get_project)
        r.add_patch("/projects/{id}", self.update_project)
        r.add_delete("/projects/{id}", self.delete_project)

        r.add_get("/features", self.list_features)
        r.add_post("/features", self.create_feature)
        r.add_get("/features/{id}", self.get_feature)
        r.add_patch("/features/{id}", self.update_feature)
        r.add_delete("/features/{id}", self.delete_feature)

        r.add_get("/keys/feature/{featureId}", self.list_keys)
        r.add_post("/keys", self.create_key)
        r.add_get("/keys/{id}", self.get_key)
        r.add_patch("/keys/{id}", self.update_key)
        r.add_delete("/keys/{id}", self.delete_key)

        r.add_get("/languages", self.list_languages)
        r.add_post("/languages", self.create_language)
        r.add_patch("/languages/{id}", self.update_language)
        r.add_delete("/languages/{id}", self.delete_language)

        r.add_get("/translations/search", self.search_translations)
        r.add_get("/translations/statistics", self.statistics)
        r.add_get("/translations/key/{keyId}", self.key_translations)
        r.add_post("/translations/bulk-upsert", self.bulk_upsert)
        r.add_post("/translations/bulk-upload", self.bulk_upload)
        r.add_post("/translations/ai-translate", self.ai_translate)
        r.add_post("/translations/ai-translate-batch", self.ai_translate_batch)
        r.add_post("/translations", self.create_translation)
        r.add_patch("/translations/{id}", self.update_translation)
        r.add_delete("/translations/{id}", self.delete_translation)
        return app

    @web.middleware
    async def _middleware(self, request: web.Request, handler):
        self.requests.append((request.method, request.path))
        failure = self.failures.get((request.method, request.path))
        if failure is not None:
            status, body = failure
            return web.json_response(body, status=status)
        return await handler(request)

    @staticmethod
    def _not_found(what: str) -> web.Response:
        return web.json_response({"message": f"{what} not found", "statusCode": 404}, status=404)

    # --- projects -----------------------------------------------------------

    async def list_projects(self, request):
        return web.json_response(list(self.projects.values()))

    async def get_project(self, request):
        project = self.projects.get(request.match_info["id"])
        return web.json_response(project) if project else self._not_found("Project")

    async def create_project(self, request):
        body = await request.json()
        if not body.get("name"):
            return web.json_response({"message": ["name should not be empty"]}, status=400)
        return web.json_response(self.add_project(body["name"], body.get("description")), status=201)

    async def update_project(self, request):
        project = self.projects.get(request.match_info["id"])
        if project is None:
            return self._not_found("Project")
        project.update(await request.json())
        return web.json_response(project)

    async def delete_project(self, request):
        if self.projects.pop(request.match_info["id"], None) is None:
            return self._not_found("Project")
        return web.Response(status=204)

    # --- features -----------------------------------------------------------

    def _feature_payload(self, feature):
        total = sum(1 for key in self.keys.values() if key["featureId"] == feature["id"])
        return dict(feature, totalKeys=total)

    async def list_features(self, request):
        project_id = request.query.get("projectId")
        features = [self._feature_payload(f) for f in self.features.values()
                    if not project_id or f["projectId"] == project_id]
        return web.json_response(features)

    async def get_feature(self, request):
        feature = self.features.get(request.match_info["id"])
        return web.json_response(self._feature_payload(feature)) if feature else self._not_found("Feature")

    async def create_feature(self, request):
        body = await request.json()
        return web.json_response(
            self.add_feature(body["projectId"], body["name"], body.get("description")), status=201
        )

    async def update_feature(self, request):
        feature = self.features.get(request.match_info["id"])
        if feature is None:
            return self._not_found("Feature")
        feature.update(await request.json())
        return web.json_response(feature)

    async def delete_feature(self, request):
        if self.features.pop(request.match_info["id"], None) is None:
            return self._not_found("Feature")
        return web.Response(status=204)

    # --- keys ---------------------------------------------------------------

    async def list_keys(self, request):
        feature_id = request.match_info["featureId"]
        return web.json_response([k for k in self.keys.values() if k["featureId"] == feature_id])

    async def get_key(self, request):
        key = self.keys.get(request.match_info["id"])
        if key is None:
            return self._not_found("Key")
        return web.json_response(dict(key, feature=self.features.get(key["featureId"])))

    async def create_key(self, request):
        body = await request.json()
        duplicate = any(k["key"] == body["key"] and k["featureId"] == body["featureId"] for k in self.keys.values())
        if duplicate:
            return web.json_response({"message": f"Key '{body['key']}' already exists in this feature"}, status=409)
        return web.json_response(self.add_key(body["featureId"], body["key"], body.get("description")), status=201)

    async def update_key(self, request):
        key = self.keys.get(request.match_info["id"])
        if key is None:
            return self._not_found("Key")
        key.update(await request.json())
        return web.json_response(key)

    async def delete_key(self, request):
        if self.keys.pop(request.match_info["id"], None) is None:
            return self._not_found("Key")
        return web.Response(status=204)

    # --- languages ----------------------------------------------------------

    async def list_languages(self, request):
        project_id = request.query.get("projectId")
        return web.json_response([l for l in self.languages.values()
                                  if not project_id or l.get("projectId") == project_id])

    async def create_language(self, request):
        body = await request.json()
        record = self.add_language(body.get("projectId"), body["locale"], body["name"], body.get("isActive", True))
        return web.json_response(record, status=201)

    async def update_language(self, request):
        language = self.languages.get(request.match_info["id"])
        if language is None:
            return self._not_found("Language")
        language.update(await request.json())
        return web.json_response(language)

    async def delete_language(self, request):
        if self.languages.pop(request.match_info["id"], None) is None:
            return self._not_found("Language")
        return web.Response(status=204)

    # --- translations -------------------------------------------------------

    def _list_item(self, translation):
        key = self.keys[translation["keyId"]]
        feature = self.features[key["featureId"]]
        return dict(translation, keyName=key["key"], featureId=feature["id"], featureName=feature["name"])

    async def key_translations(self, request):
        key_id = request.match_info["keyId"]
        return web.json_response([t for t in self.translations.values() if t["keyId"] == key_id])

    async def search_translations(self, request):
        query = request.query
        items = [self._list_item(t) for t in self.translations.values() if t["keyId"] in self.keys]
        if query.get("q"):
            needle = query["q"].lower()
            items = [i for i in items if needle in i["keyName"].lower() or needle in i["value"].lower()]
        if query.get("locale"):
            items = [i for i in items if i["locale"] == query["locale"]]
        if query.get("featureId"):
            items = [i for i in items if i["featureId"] == query["featureId"]]
        if query.get("projectId"):
            items = [i for i in items if self.features[i["featureId"]]["projectId"] == query["projectId"]]

        sort_by = query.get("sortBy", "updatedAt")
        items.sort(key=lambda i: (i.get(sort_by) or "", i["id"]), reverse=query.get("sortOrder", "desc") == "desc")

        page = int(query.get("page", 1))
        limit = int(query.get("limit", 25))
        total = len(items)
        data = items[(page - 1) * limit:page * limit]
        meta = {"total": total, "page": page, "limit": limit, "totalPages": math.ceil(total / limit) if limit else 0}
        return web.json_response({"data": data, "meta": meta})

    async def create_translation(self, request):
        body = await request.json()
        if self.translation_for(body["keyId"], body["locale"]) is not None:
            return web.json_response({"message": "Translation already exists for this locale"}, status=409)
        return web.json_response(self.add_translation(body["keyId"], body["locale"], body["value"]), status=201)

    async def update_translation(self, request):
        translation = self.translations.get(request.match_info["id"])
        if translation is None:
            return self._not_found("Translation")
        translation["value"] = (await request.json())["value"]
        translation["updatedAt"] = _now()
        return web.json_response(translation)

    async def delete_translation(self, request):
        if self.translations.pop(request.match_info["id"], None) is None:
            return self._not_found("Translation")
        return web.Response(status=204)

    async def bulk_upsert(self, request):
        body = await request.json()
        records = [self._upsert(body["keyId"], t["locale"], t["value"])[0] for t in body["translations"]]
        return web.json_response(records)

    async def bulk_upload(self, request):
        feature_id = request.query["featureId"]
        form = await request.post()
        upload = form["file"]
        text = upload.file.read().decode("utf-8")
        self.uploads.append({"featureId": feature_id, "filename": upload.filename, "text": text})

        rows = list(csv.reader(io.StringIO(text)))
        if not rows or rows[0][0] != "key":
            return web.json_response({"error": True, "message": "CSV must start with a key column"})
        header, created, updated, skipped = rows[0], 0, 0, 0
        for row in rows[1:]:
            key = next((k for k in self.keys.values()
                        if k["featureId"] == feature_id and k["key"] == row[0]), None)
            if key is None:
                key = self.add_key(feature_id, row[0])
            for locale, value in zip(header[1:], row[1:]):
                if not value:
                    skipped += 1
                    continue
                _, was_created = self._upsert(key["id"], locale, value)
                created += was_created
                updated += not was_created
        return web.json_response({"created": created, "updated": updated, "skipped": skipped})

    def _machine_translate(self, key, locale):
        english = self.translation_for(key["id"], "en")
        source = english["value"] if english and english["value"] else key["key"]
        return self._upsert(key["id"], locale, f"[{locale}] {source}")[0]

    async def ai_translate(self, request):
        body = await request.json()
        key = self.keys.get(body["keyId"])
        if key is None:
            return self._not_found("Key")
        translated = [self._machine_translate(key, locale) for locale in body["targetLocales"]]
        return web.json_response({"success": True, "translatedCount": len(translated),
                                  "skippedCount": 0, "errors": [], "translations": translated})

    async def ai_translate_batch(self, request):
        body = await request.json()
        keys = [k for k in self.keys.values()
                if (not body.get("featureId") or k["featureId"] == body["featureId"])
                and (not body.get("projectId") or self._project_of_key(k) == body["projectId"])]
        translated = skipped = 0
        for key in keys:
            for locale in body.get("targetLocales") or self._active_locales(self._project_of_key(key)):
                existing = self.translation_for(key["id"], locale)
                if existing and existing["value"]:
                    skipped += 1
                    continue
                self._machine_translate(key, locale)
                translated += 1
        return web.json_response({
            "success": True, "translatedCount": translated, "skippedCount": skipped, "errors": [],
            "statistics": {"totalKeys": len(keys), "processedKeys": len(keys), "estimatedTimeSeconds": 0},
        })

    async def statistics(self, request):
        feature_id = request.query.get("featureId")
        project_id = request.query.get("projectId")
        keys = [k for k in self.keys.values()
                if (not feature_id or k["featureId"] == feature_id)
                and (not project_id or self._project_of_key(k) == project_id)]

        missing, total, filled_total = [], 0, 0
        for key in keys:
            locales = self._active_locales(self._project_of_key(key))
            filled = [l for l in locales
                      if (self.translation_for(key["id"], l) or {}).get("value")]
            total += len(locales)
            filled_total += len(filled)
            if len(filled) < len(locales):
                feature = self.features[key["featureId"]]
                missing.append({
                    "keyId": key["id"], "keyName": key["key"],
                    "featureId": feature["id"], "featureName": feature["name"],
                    "projectId": feature["projectId"],
                    "missingLocales": [l for l in locales if l not in filled],
                    "filledLocales": filled,
                })
        return web.json_response({
            "missingTranslations": missing,
            "overallCompletionPercentage": (filled_total * 100 / total) if total else 100,
            "completionByLocale": [],
            "completionByFeature": [],
            "emptyValueCount": sum(1 for t in self.translations.values() if not t["value"]),
            "recentlyUpdated": [],
            "totalTranslations": len(self.translations),
            "mostActiveFeatures": [],
            "orphanedKeysCount": 0,
            "duplicateKeys": [],
            "activeFeaturesWithMissingTranslations": len({m["featureId"] for m in missing}),
        })
