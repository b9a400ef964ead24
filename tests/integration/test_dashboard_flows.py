"""End-to-end flows through Dashboard, ApiClient and the fake API."""
import asyncio

from aiohttp.test_utils import AioHTTPTestCase

from fake_api import FakeLocalizationApi
from mio_dashboard.api_client import ApiClient
from mio_dashboard.csv_import import build_upload_csv, parse_csv
from mio_dashboard.dashboard import Dashboard, EntityStatus
from mio_dashboard.errors import ApiRequestError
from mio_dashboard.focus import FocusSession, build_focus_queue
from mio_dashboard.search import SearchState, fetch_all_pages
from mio_dashboard.translation_editor import TranslationDraft


class DashboardFlowTestCase(AioHTTPTestCase):

    async def get_application(self):
        self.api = FakeLocalizationApi()
        self.seed = self.api.seed_auth_example()
        return self.api.make_app()

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.api_client = ApiClient(base_url=str(self.server.make_url("/")), max_requests_per_second=1000)
        self.dashboard = Dashboard(self.api_client)

    async def asyncTearDown(self):
        await self.api_client.close()
        await super().asyncTearDown()

    @property
    def project_id(self):
        return self.seed["project"]["id"]

    @property
    def key_id(self):
        return self.seed["key"]["id"]


class TestCachedReads(DashboardFlowTestCase):

    async def test_concurrent_reads_share_one_request(self):
        first, second = await asyncio.gather(self.dashboard.projects(), self.dashboard.projects())

        self.assertEqual(first, second)
        self.assertEqual(self.api.count("GET", "/projects"), 1)

    async def test_repeated_read_is_served_from_cache(self):
        await self.dashboard.features(self.project_id)
        await self.dashboard.features(self.project_id)

        self.assertEqual(self.api.count("GET", "/features"), 1)

    async def test_create_project_refetches_the_list(self):
        await self.dashboard.projects()

        outcome = await self.dashboard.create_project("Second")
        projects = await self.dashboard.projects()

        self.assertTrue(outcome.ok)
        self.assertEqual(sorted(p.name for p in projects), ["Mio", "Second"])
        self.assertEqual(self.api.count("GET", "/projects"), 2)

    async def test_failed_mutation_keeps_cache_and_reports_message(self):
        await self.dashboard.projects()
        self.api.failures[("POST", "/projects")] = (500, {"message": "Database unavailable"})

        outcome = await self.dashboard.create_project("Second")
        await self.dashboard.projects()

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error_message, "Database unavailable")
        self.assertEqual(self.api.count("GET", "/projects"), 1)

    async def test_read_errors_propagate(self):
        with self.assertRaises(ApiRequestError):
            await self.dashboard.project("missing")


class TestTranslationEditing(DashboardFlowTestCase):

    async def _draft(self):
        draft = TranslationDraft(self.key_id)
        draft.seed(await self.dashboard.translations(self.key_id), await self.dashboard.languages(self.project_id))
        return draft

    async def test_save_sends_only_dirty_locales_and_refetches(self):
        draft = await self._draft()
        draft.set_value("id", "Masuk")

        outcome = await draft.save(self.dashboard)
        translations = await self.dashboard.translations(self.key_id)

        self.assertTrue(outcome.ok)
        self.assertEqual([t.locale for t in outcome.value], ["id"])
        self.assertEqual({t.locale: t.value for t in translations}, {"en": "Login", "id": "Masuk"})
        self.assertEqual(self.api.count("GET", f"/translations/key/{self.key_id}"), 2)
        self.assertFalse(draft.has_changes)
        self.assertIs(self.dashboard.statuses.get(self.key_id), EntityStatus.SAVED)

    async def test_failed_save_keeps_changes(self):
        self.api.failures[("POST", "/translations/bulk-upsert")] = (400, {"message": "Value too long"})
        draft = await self._draft()
        draft.set_value("id", "Masuk")

        outcome = await draft.save(self.dashboard)

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error_message, "Value too long")
        self.assertEqual(draft.dirty_locales, ["id"])
        self.assertIs(self.dashboard.statuses.get(self.key_id), EntityStatus.ERROR)


class TestFocusMode(DashboardFlowTestCase):

    async def test_submitting_the_only_missing_value_completes_the_queue(self):
        statistics = await self.dashboard.statistics(None, self.project_id)
        queue = build_focus_queue(statistics, "id")

        self.assertEqual(len(queue), 1)
        self.assertEqual(queue[0].key_name, "login.title")

        session = FocusSession(queue, self.dashboard)
        context = await session.context()
        outcome = await session.submit("Masuk")

        self.assertEqual([(t.locale, t.value) for t in context], [("en", "Login")])
        self.assertTrue(outcome.ok)
        self.assertTrue(session.complete)
        self.assertEqual(session.streak, 1)

        refreshed = await self.dashboard.statistics(None, self.project_id)
        self.assertEqual(refreshed.missing_translations, [])
        self.assertEqual(self.api.count("GET", "/translations/statistics"), 2)


class TestCsvUpload(DashboardFlowTestCase):

    async def test_unrecognised_columns_are_not_uploaded(self):
        document = parse_csv(b"Key,English,Indonesian,Notes\nlogin.title,Login,Masuk,header of the page\n")
        languages = await self.dashboard.languages(self.project_id)
        upload = build_upload_csv(document, ["Key", "en", "id", "Notes"], [l.locale for l in languages])

        outcome = await self.dashboard.bulk_upload(self.seed["feature"]["id"], "auth.csv", upload.encode("utf-8"))

        self.assertTrue(outcome.ok)
        self.assertEqual(self.api.uploads[0]["text"].splitlines()[0], "key,en,id")
        self.assertEqual(self.api.translation_for(self.key_id, "id")["value"], "Masuk")

    async def test_error_flag_in_upload_response_fails_the_outcome(self):
        outcome = await self.dashboard.bulk_upload(self.seed["feature"]["id"], "bad.csv", b"en\nLogin\n")

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error_message, "CSV must start with a key column")
        self.assertTrue(outcome.value.error)


class TestExportPaging(DashboardFlowTestCase):

    async def test_all_pages_are_stitched_in_order(self):
        feature_id = self.seed["feature"]["id"]
        for index in range(5):
            key = self.api.add_key(feature_id, f"item.{index}")
            self.api.add_translation(key["id"], "en", f"Item {index}")

        state = SearchState(page_size=2, sort_by="keyName", sort_order="asc")
        items = await fetch_all_pages(self.dashboard, state, show_progress=False)

        self.assertEqual(len(items), 6)
        self.assertEqual([i.key_name for i in items],
                         ["item.0", "item.1", "item.2", "item.3", "item.4", "login.title"])
