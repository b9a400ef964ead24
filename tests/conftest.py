import json
import os

import pytest

from mio_dashboard.app_config import AppConfig
from mio_dashboard.models import TranslationStatistics
from mio_dashboard.project_context import PROJECT_STORAGE_KEY


@pytest.fixture
def app_config(tmp_path):
    """Configuration pointing every path into the test's temporary directory."""
    return AppConfig(
        project_root=str(tmp_path),
        state_file=str(tmp_path / "state" / "state.json"),
        export_folder=str(tmp_path / "exports"),
        api_url="http://api.test",
        request_timeout=8.0,
        max_requests_per_second=100,
        page_size=25,
        search_debounce_seconds=0.0,
        preview_row_limit=50,
    )


@pytest.fixture
def selected_project(app_config):
    """Persist 'p1' as the selected project before the test runs."""
    state_path = app_config.state_file
    os.makedirs(os.path.dirname(state_path), exist_ok=True)
    with open(state_path, 'w', encoding='utf-8') as f:
        json.dump({PROJECT_STORAGE_KEY: "p1"}, f)
    return "p1"


@pytest.fixture
def statistics_payload():
    """A statistics response as the API sends it: one key missing its 'id' value."""
    return {
        "missingTranslations": [
            {
                "keyId": "k1",
                "keyName": "login.title",
                "featureId": "f1",
                "featureName": "Auth",
                "projectId": "p1",
                "projectName": "Mio",
                "missingLocales": ["id"],
                "filledLocales": ["en"],
            }
        ],
        "overallCompletionPercentage": 50,
        "completionByLocale": [
            {"locale": "en", "total": 1, "filled": 1, "percentage": 100},
            {"locale": "id", "total": 1, "filled": 0, "percentage": 0},
        ],
        "completionByFeature": [
            {"featureId": "f1", "featureName": "Auth", "total": 2, "filled": 1, "percentage": 50},
        ],
        "emptyValueCount": 0,
        "recentlyUpdated": [
            {"keyId": "k1", "keyName": "login.title", "locale": "en", "value": "Login",
             "updatedAt": "2024-05-01T10:00:00Z"},
        ],
        "totalTranslations": 1,
        "mostActiveFeatures": [{"featureId": "f1", "featureName": "Auth", "translationCount": 1}],
        "orphanedKeysCount": 0,
        "duplicateKeys": [],
        "activeFeaturesWithMissingTranslations": 1,
    }


@pytest.fixture
def statistics(statistics_payload):
    return TranslationStatistics.from_payload(statistics_payload)
