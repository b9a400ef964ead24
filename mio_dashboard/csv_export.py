import logging
import os
from datetime import date
from typing import Dict, Iterable, List, Optional

from mio_dashboard.models import Language, TranslationListItem

logger = logging.getLogger(__name__)

_SPECIAL_CHARACTERS = (',', '"', '\n', '\r')


def escape_csv_field(value: str) -> str:
    """
    Quote a field that contains a comma, a double quote or a line break,
    doubling embedded quotes. Other values are written as-is.
    """
    if any(ch in value for ch in _SPECIAL_CHARACTERS):
        return '"' + value.replace('"', '""') + '"'
    return value


def generate_csv(translations: Iterable[TranslationListItem], locales: List[str]) -> str:
    """
    Group flat translation records by key name into one CSV row per key.

    Args:
        translations: Records carrying key name, locale and value.
        locales: The locale columns to emit, in order. The caller decides which
            locales qualify; nothing is filtered here.

    Returns:
        str: ``Key,<locale>...`` followed by one row per unique key, in the order
        keys were first seen, newline-joined. A (key, locale) pair with no record
        is an empty cell.
    """
    grouped: Dict[str, Dict[str, str]] = {}
    for item in translations:
        grouped.setdefault(item.key_name, {})[item.locale] = item.value

    header = ",".join(["Key"] + [escape_csv_field(locale) for locale in locales])

    rows = []
    for key_name, locale_values in grouped.items():
        values = [escape_csv_field(locale_values.get(locale) or '') for locale in locales]
        rows.append(",".join([escape_csv_field(key_name)] + values))

    return "\n".join([header] + rows)


def get_unique_locales(translations: Iterable[TranslationListItem]) -> List[str]:
    return sorted({item.locale for item in translations})


def active_export_locales(translations: Iterable[TranslationListItem], languages: Iterable[Language]) -> List[str]:
    """Unique locales of ``translations`` that belong to an active language."""
    active = {language.locale for language in languages if language.is_active}
    return [locale for locale in get_unique_locales(translations) if locale in active]


def format_filename(prefix: str = "translations", today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}_{today.isoformat()}.csv"


def write_csv(path: str, csv_content: str) -> str:
    """Write the CSV as UTF-8 bytes and return the absolute path written."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'wb') as f:
        f.write(csv_content.encode('utf-8'))
    absolute_path = os.path.abspath(path)
    logger.info("Exported %d byte(s) of CSV to '%s'.", len(csv_content.encode('utf-8')), absolute_path)
    return absolute_path
