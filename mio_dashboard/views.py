"""
rich renderables for every screen of the console.

Each ``render_*`` function takes plain records and returns something
``Console.print`` accepts; none of them touch the API.
"""
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from rich.columns import Columns
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mio_dashboard.csv_import import CsvPreview
from mio_dashboard.dashboard import EntityStatus
from mio_dashboard.focus import FocusSession
from mio_dashboard.formatting import (
    TIER_STYLES,
    completion_style,
    completion_tier,
    format_number,
    format_percentage,
    format_relative_time,
    pluralize,
)
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
    TranslationStatistics,
)
from mio_dashboard.translation_editor import DraftFilter, TranslationDraft

BAR_WIDTH = 20


def _bar(percentage: float, width: int = BAR_WIDTH) -> Text:
    filled = max(0, min(width, int(round(percentage * width / 100))))
    style = completion_style(percentage)
    bar = Text("█" * filled, style=style)
    bar.append("░" * (width - filled), style="dim")
    bar.append(f" {format_percentage(percentage)}", style=style)
    return bar


def _or_dash(value: Optional[str]) -> str:
    return value if value else "-"


# --- entity lists -----------------------------------------------------------

def render_projects(projects: Sequence[Project], selected_id: Optional[str] = None) -> Table:
    table = Table(title=f"Projects ({len(projects)})")
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Updated", style="dim")
    for project in projects:
        marker = "*" if project.id == selected_id else ""
        table.add_row(
            marker, project.id, project.name, _or_dash(project.description),
            format_relative_time(project.updated_at),
        )
    return table


def render_project(project: Project, features: Sequence[Feature], languages: Sequence[Language]) -> Group:
    details = Table.grid(padding=(0, 2))
    details.add_column(style="bold")
    details.add_column()
    details.add_row("ID", project.id)
    details.add_row("Name", project.name)
    details.add_row("Description", _or_dash(project.description))
    details.add_row("Features", str(len(features)))
    details.add_row("Languages", ", ".join(l.locale for l in languages if l.is_active) or "-")
    return Group(Panel(details, title=project.name), render_features(features))


def render_features(features: Sequence[Feature]) -> Table:
    table = Table(title=f"Features ({len(features)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Keys", justify="right")
    for feature in features:
        keys = "-" if feature.total_keys is None else format_number(feature.total_keys)
        table.add_row(feature.id, feature.name, _or_dash(feature.description), keys)
    return table


def render_keys(keys: Sequence[KeyItem], feature: Optional[Feature] = None) -> Table:
    title = f"Keys in {feature.name}" if feature else "Keys"
    table = Table(title=f"{title} ({len(keys)})")
    table.add_column("ID", style="dim")
    table.add_column("Key", style="cyan")
    table.add_column("Description")
    for item in keys:
        table.add_row(item.id, item.key, _or_dash(item.description))
    return table


def render_languages(languages: Sequence[Language]) -> Table:
    table = Table(title=f"Languages ({len(languages)})")
    table.add_column("ID", style="dim")
    table.add_column("Locale", style="cyan")
    table.add_column("Name")
    table.add_column("Active")
    for language in languages:
        active = Text("yes", style="green") if language.is_active else Text("no", style="dim")
        table.add_row(language.id, language.locale, language.name, active)
    return table


def render_translations(key: KeyItem, translations: Sequence[Translation]) -> Table:
    table = Table(title=f"Translations of {key.key}")
    table.add_column("ID", style="dim")
    table.add_column("Locale", style="cyan")
    table.add_column("Value")
    for translation in sorted(translations, key=lambda t: t.locale):
        value = Text(translation.value) if translation.value.strip() else Text("(empty)", style="dim italic")
        table.add_row(translation.id, translation.locale, value)
    return table


def render_search_results(page: PaginatedTranslations, now: Optional[datetime] = None) -> Group:
    table = Table()
    table.add_column("Key", style="cyan")
    table.add_column("Feature")
    table.add_column("Locale")
    table.add_column("Value")
    table.add_column("Updated", style="dim")
    for item in page.data:
        table.add_row(item.key_name, item.feature_name, item.locale, item.value,
                      format_relative_time(item.updated_at, now))
    meta = page.meta
    footer = Text(
        f"Page {meta.page} of {max(meta.total_pages, 1)} - {pluralize(meta.total, 'translation')}",
        style="dim",
    )
    return Group(table, footer)


# --- translation editor -----------------------------------------------------

_SAVE_STATUS_LABELS = {
    EntityStatus.SAVING: ("Saving...", "yellow"),
    EntityStatus.SAVED: ("Saved", "green"),
    EntityStatus.ERROR: ("Save failed", "red"),
}


def render_save_status(status: EntityStatus) -> Text:
    """Badge for the last save of an entity; empty while nothing was sent."""
    label, style = _SAVE_STATUS_LABELS.get(status, ("", ""))
    return Text(label, style=style)


def render_draft(
    draft: TranslationDraft,
    key: KeyItem,
    view: DraftFilter = DraftFilter.ALL,
    status: EntityStatus = EntityStatus.IDLE,
) -> Group:
    filled, total, percentage = draft.progress()
    header = Text(f"{key.key}  ", style="bold")
    header.append_text(_bar(percentage))
    header.append(f"  {filled}/{total} filled", style="dim")
    if status is not EntityStatus.IDLE:
        header.append("  ")
        header.append_text(render_save_status(status))

    table = Table()
    table.add_column("Locale", style="cyan")
    table.add_column("Language")
    table.add_column("Value")
    table.add_column("", width=8)
    for row in draft.rows(view):
        value = Text(row.value) if not row.is_empty else Text("(empty)", style="dim italic")
        state = Text("modified", style="yellow") if row.dirty else Text("")
        table.add_row(row.locale, row.language_name, value, state)

    parts = [header, table]
    if draft.has_changes:
        parts.append(Text(f"{pluralize(len(draft.dirty_locales), 'unsaved change')}", style="yellow"))
    return Group(*parts)


# --- statistics -------------------------------------------------------------

def _metric_card(title: str, value: str, subtitle: str, variant: str = "default") -> Panel:
    body = Text(value, style=f"bold {TIER_STYLES[variant]}")
    body.append(f"\n{subtitle}", style="dim")
    return Panel(body, title=title, border_style=TIER_STYLES[variant], expand=True)


def render_metric_cards(stats: TranslationStatistics) -> Columns:
    overall = stats.overall_completion_percentage
    missing = len(stats.missing_translations)
    return Columns([
        _metric_card("Overall Completion", format_percentage(overall),
                     "Across all locales and keys", completion_tier(overall)),
        _metric_card("Total Translations", format_number(stats.total_translations), "Translation records"),
        _metric_card("Empty Values", format_number(stats.empty_value_count), "Translations with empty strings",
                     "warning" if stats.empty_value_count > 0 else "success"),
        _metric_card("Missing Translations", format_number(missing), "Keys with incomplete locales",
                     "danger" if missing > 0 else "success"),
    ], expand=True)


def render_completion(title: str, rows: Sequence[Tuple[str, int, int, float]]) -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("Filled", justify="right")
    table.add_column("Completion")
    for name, filled, total, percentage in rows:
        table.add_row(name, f"{filled}/{total}", _bar(percentage))
    return table


def health_messages(stats: TranslationStatistics) -> List[Tuple[str, str]]:
    """(variant, message) lines for the system health panel."""
    messages = []
    orphaned = stats.orphaned_keys_count
    if orphaned > 0:
        messages.append(("danger", f"{pluralize(orphaned, 'orphaned key')} found "
                                   "(keys with no translations in any locale)"))
    else:
        messages.append(("success", "No orphaned keys"))

    duplicates = stats.duplicate_keys
    if duplicates:
        messages.append(("warning", f"{pluralize(len(duplicates), 'duplicate key')} found"))
        for duplicate in duplicates:
            names = ", ".join(f["feature_name"] for f in duplicate.features)
            messages.append(("warning", f"  {duplicate.key_name}: {names}"))
    else:
        messages.append(("success", "No duplicate keys"))

    incomplete = stats.active_features_with_missing_translations
    if incomplete > 0:
        messages.append(("warning", f"{pluralize(incomplete, 'active feature')} with incomplete translations"))
    else:
        messages.append(("success", "All active features have complete translations"))

    if orphaned == 0 and not duplicates and incomplete == 0:
        messages.append(("success", "All systems healthy!"))
    return messages


def render_health(stats: TranslationStatistics) -> Panel:
    text = Text()
    for index, (variant, message) in enumerate(health_messages(stats)):
        if index:
            text.append("\n")
        text.append(message, style=TIER_STYLES[variant])
    return Panel(text, title="System Health")


def render_missing(stats: TranslationStatistics, limit: int = 20) -> Table:
    missing = stats.missing_translations
    table = Table(title=f"Missing Translations ({len(missing)})")
    table.add_column("Key", style="cyan")
    table.add_column("Feature")
    table.add_column("Missing", style="red")
    table.add_column("Filled", style="green")
    for item in missing[:limit]:
        table.add_row(item.key_name, item.feature_name,
                      ", ".join(item.missing_locales) or "-", ", ".join(item.filled_locales) or "-")
    if len(missing) > limit:
        table.caption = f"{len(missing) - limit} more not shown"
    return table


def render_recent_activity(stats: TranslationStatistics, now: Optional[datetime] = None) -> Table:
    table = Table(title="Recent Activity")
    table.add_column("Key", style="cyan")
    table.add_column("Locale")
    table.add_column("Value")
    table.add_column("When", style="dim")
    for item in stats.recently_updated:
        table.add_row(item.key_name, item.locale, item.value, format_relative_time(item.updated_at, now))
    return table


def render_most_active(stats: TranslationStatistics) -> Table:
    table = Table(title="Most Active Features")
    table.add_column("Feature", style="cyan")
    table.add_column("Translations", justify="right")
    for item in stats.most_active_features:
        table.add_row(item.feature_name, format_number(item.translation_count))
    return table


def render_statistics(stats: TranslationStatistics, now: Optional[datetime] = None) -> Group:
    return Group(
        render_metric_cards(stats),
        render_completion("Completion by Locale",
                          [(c.locale, c.filled, c.total, c.percentage) for c in stats.completion_by_locale]),
        render_completion("Completion by Feature",
                          [(c.feature_name, c.filled, c.total, c.percentage) for c in stats.completion_by_feature]),
        render_health(stats),
        render_missing(stats),
        render_recent_activity(stats, now),
        render_most_active(stats),
    )


# --- focus mode -------------------------------------------------------------

def render_focus_task(session: FocusSession, context: Sequence[Translation] = ()) -> Panel:
    task = session.current
    done, total = session.progress
    if task is None:
        summary = Text("Session complete!", style="bold green")
        summary.append(f"\n{pluralize(session.translated, 'translation')} added, {session.skipped} skipped",
                       style="dim")
        return Panel(summary, title="Focus Mode")

    body = Text(task.key_name, style="bold cyan")
    body.append(f"\n{task.feature_name}  ->  {task.locale}", style="dim")
    for translation in context:
        body.append(f"\n  {translation.locale}: ", style="dim")
        body.append(translation.value)
    subtitle = f"{done + 1} of {total}"
    if session.streak:
        subtitle += f"  streak {session.streak}"
    return Panel(body, title="Focus Mode", subtitle=subtitle)


# --- CSV import and mutation results ----------------------------------------

def render_csv_preview(csv_preview: CsvPreview, renamed: Optional[Sequence[str]] = None) -> Group:
    table = Table()
    headers = list(renamed) if renamed is not None else csv_preview.headers
    for original, name in zip(csv_preview.headers, headers):
        table.add_column(name if name == original else f"{name} ({original})")
    for row in csv_preview.rows:
        table.add_row(*row)
    return Group(table, Text(csv_preview.summary, style="dim"))


def render_upload_result(result: BulkUploadResult) -> Panel:
    if result.error:
        return render_error(result.message or "Upload failed", title="Upload failed")
    text = Text()
    text.append(f"Created: {result.created}\n", style="green")
    text.append(f"Updated: {result.updated}\n", style="blue")
    text.append(f"Skipped: {result.skipped}", style="dim")
    if result.message:
        text.append(f"\n{result.message}")
    return Panel(text, title="Upload complete", border_style="green")


def render_ai_result(result: AITranslateResponse) -> Panel:
    style = "green" if result.success else "yellow"
    text = Text(f"Translated {result.translated_count}, skipped {result.skipped_count}", style=style)
    for error in result.errors:
        text.append(f"\n- {error}", style="red")
    return Panel(text, title="AI Translate", border_style=style)


def render_ai_batch_result(result: AITranslateBatchResponse) -> Panel:
    style = "green" if result.success else "yellow"
    text = Text(f"Translated {result.translated_count}, skipped {result.skipped_count}", style=style)
    if result.statistics is not None:
        stats = result.statistics
        text.append(f"\nProcessed {stats.processed_keys} of {stats.total_keys} keys", style="dim")
    for error in result.errors:
        text.append(f"\n- {error}", style="red")
    return Panel(text, title="AI Batch Translate", border_style=style)


def render_error(message: str, title: str = "Error", hint: Optional[str] = None) -> Panel:
    text = Text(message, style="red")
    if hint:
        text.append(f"\n{hint}", style="dim")
    return Panel(text, title=title, border_style="red")
