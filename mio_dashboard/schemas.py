"""JSON schemas for the API responses the console builds records from.

Only the structure needed to construct the dataclasses in ``models`` is
enforced; the API is free to send extra fields.
"""
from typing import Any, Dict

import jsonschema

from mio_dashboard.errors import ApiResponseError

RECORD_SCHEMA = {
    "type": "object",
    "required": ["id"],
    "properties": {
        "id": {"type": ["string", "integer"]},
    },
}

RECORD_LIST_SCHEMA = {
    "type": "array",
    "items": RECORD_SCHEMA,
}

PAGINATED_SCHEMA = {
    "type": "object",
    "required": ["data", "meta"],
    "properties": {
        "data": RECORD_LIST_SCHEMA,
        "meta": {
            "type": "object",
            "required": ["total", "page", "limit"],
            "properties": {
                "total": {"type": "integer", "minimum": 0},
                "page": {"type": "integer", "minimum": 1},
                "limit": {"type": "integer", "minimum": 0},
                "totalPages": {"type": "integer", "minimum": 0},
            },
        },
    },
}

_LIST_OF_OBJECTS = {"type": "array", "items": {"type": "object"}}

STATISTICS_SCHEMA = {
    "type": "object",
    "required": ["missingTranslations", "overallCompletionPercentage"],
    "properties": {
        "missingTranslations": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["keyId", "missingLocales"],
                "properties": {
                    "missingLocales": {"type": "array", "items": {"type": "string"}},
                    "filledLocales": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
        "overallCompletionPercentage": {"type": "number"},
        "completionByLocale": _LIST_OF_OBJECTS,
        "completionByFeature": _LIST_OF_OBJECTS,
        "recentlyUpdated": _LIST_OF_OBJECTS,
        "mostActiveFeatures": _LIST_OF_OBJECTS,
        "duplicateKeys": _LIST_OF_OBJECTS,
        "emptyValueCount": {"type": "integer"},
        "totalTranslations": {"type": "integer"},
        "orphanedKeysCount": {"type": "integer"},
        "activeFeaturesWithMissingTranslations": {"type": "integer"},
    },
}

BULK_UPLOAD_SCHEMA = {
    "type": "object",
    "properties": {
        "created": {"type": "integer"},
        "updated": {"type": "integer"},
        "skipped": {"type": "integer"},
        "message": {"type": "string"},
        "error": {"type": "boolean"},
    },
}


def validate_payload(payload: Any, schema: Dict[str, Any], what: str) -> Any:
    """
    Validate ``payload`` against ``schema`` and hand it back unchanged.

    Raises:
        ApiResponseError: if the payload does not match.
    """
    try:
        jsonschema.validate(instance=payload, schema=schema)
    except jsonschema.ValidationError as schema_exc:
        raise ApiResponseError(f"Unexpected {what} response from API: {schema_exc.message}") from schema_exc
    return payload
