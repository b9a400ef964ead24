"""
Command-line console for the localization API.

Usage:
    mio-dashboard projects list
    mio-dashboard projects select <project-id>
    mio-dashboard translations edit <key-id> --set en=Login --set id=Masuk
    mio-dashboard translations browse login
    mio-dashboard translations import <feature-id> strings.csv --rename English=en
    mio-dashboard stats
    mio-dashboard focus id
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

import typer
from rich.console import Console

from mio_dashboard import __version__, views
from mio_dashboard.api_client import ApiClient
from mio_dashboard.app_config import AppConfig, load_app_config
from mio_dashboard.csv_export import active_export_locales, format_filename, generate_csv, write_csv
from mio_dashboard.csv_import import build_upload_csv, parse_csv, preview
from mio_dashboard.dashboard import Dashboard, MutationOutcome
from mio_dashboard.errors import DashboardError, error_message
from mio_dashboard.focus import FocusSession, build_focus_queue
from mio_dashboard.models import PaginatedTranslations
from mio_dashboard.project_context import JsonFileStorage, ProjectSelection
from mio_dashboard.search import SearchRunner, SearchState, fetch_all_pages
from mio_dashboard.translation_editor import DraftFilter, TranslationDraft

logger = logging.getLogger(__name__)

RETRY_HINT = "Re-run the command to retry."

app = typer.Typer(
    name="mio-dashboard",
    help="Manage projects, features, keys, languages and translations of a localization API.",
    add_completion=False,
)
projects_app = typer.Typer(help="List, inspect and manage projects.")
features_app = typer.Typer(help="Manage the features of a project.")
keys_app = typer.Typer(help="Manage the translation keys of a feature.")
languages_app = typer.Typer(help="Manage the languages of a project.")
translations_app = typer.Typer(help="Edit, search, export and import translations.")
ai_app = typer.Typer(help="Fill missing translations with the API's AI translator.")
app.add_typer(projects_app, name="projects")
app.add_typer(features_app, name="features")
app.add_typer(keys_app, name="keys")
app.add_typer(languages_app, name="languages")
app.add_typer(translations_app, name="translations")
app.add_typer(ai_app, name="ai")

console = Console()


@dataclass
class CliSession:
    config: AppConfig
    dashboard: Dashboard
    selection: ProjectSelection


def _make_client(config: AppConfig) -> ApiClient:
    return ApiClient(
        base_url=config.api_url,
        request_timeout=config.request_timeout,
        max_requests_per_second=config.max_requests_per_second,
    )


def _run(action: Callable[[CliSession], Awaitable[None]]) -> None:
    """Run one command against a fresh client; API and CSV failures end the command."""
    config = load_app_config()
    selection = ProjectSelection(JsonFileStorage(config.state_file))

    async def _main() -> None:
        client = _make_client(config)
        try:
            await action(CliSession(config=config, dashboard=Dashboard(client), selection=selection))
        finally:
            await client.close()

    try:
        asyncio.run(_main())
    except DashboardError as exc:
        logger.error("Command failed: %s", exc)
        console.print(views.render_error(error_message(exc, "Something went wrong"), hint=RETRY_HINT))
        raise typer.Exit(1)


def _report(outcome: MutationOutcome, success: Optional[str] = None):
    if not outcome.ok:
        console.print(views.render_error(outcome.error_message or "Request failed", hint=RETRY_HINT))
        raise typer.Exit(1)
    if success:
        console.print(f"[green]{success}[/]")
    return outcome.value


def _parse_pairs(values: Optional[List[str]], option: str) -> List[Tuple[str, str]]:
    pairs = []
    for raw in values or []:
        name, sep, value = raw.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{raw}'", param_hint=option)
        pairs.append((name.strip(), value))
    return pairs


def version_callback(value: bool):
    if value:
        console.print(f"mio-dashboard v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Localization dashboard on the command line."""


# --- projects ---------------------------------------------------------------

@projects_app.command("list")
def projects_list():
    """List projects; the selected one is marked with *."""
    async def action(s: CliSession) -> None:
        projects = await s.dashboard.projects()
        previous = s.selection.project_id
        selected = s.selection.auto_select(projects)
        console.print(views.render_projects(projects, selected))
        if selected and selected != previous:
            console.print(f"[dim]Selected the only project ({selected}).[/]")
        if not projects:
            console.print("[yellow]No projects yet.[/] Create one with 'projects create NAME'.")

    _run(action)


@projects_app.command("show")
def projects_show(project_id: str = typer.Argument(..., help="Project id")):
    async def action(s: CliSession) -> None:
        project = await s.dashboard.project(project_id)
        features = await s.dashboard.features(project_id)
        languages = await s.dashboard.languages(project_id)
        console.print(views.render_project(project, features, languages))

    _run(action)


@projects_app.command("create")
def projects_create(
    name: str = typer.Argument(..., help="Project name"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    select: bool = typer.Option(False, "--select", help="Select the new project"),
):
    async def action(s: CliSession) -> None:
        project = _report(await s.dashboard.create_project(name, description), f"Created project {name}")
        if select:
            s.selection.select(project.id)

    _run(action)


@projects_app.command("update")
def projects_update(
    project_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    async def action(s: CliSession) -> None:
        _report(await s.dashboard.update_project(project_id, name, description), "Project updated")

    _run(action)


@projects_app.command("delete")
def projects_delete(
    project_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a project with all its features, keys and translations."""
    if not yes:
        typer.confirm(f"Delete project {project_id} and everything in it?", abort=True)

    async def action(s: CliSession) -> None:
        _report(await s.dashboard.delete_project(project_id), "Project deleted")
        if s.selection.project_id == project_id:
            s.selection.clear()

    _run(action)


@projects_app.command("select")
def projects_select(
    project_id: Optional[str] = typer.Argument(None, help="Project id to work in"),
    clear: bool = typer.Option(False, "--clear", help="Forget the selected project"),
):
    """Choose the project later commands work in."""
    if not clear and not project_id:
        raise typer.BadParameter("Give a project id or --clear")

    async def action(s: CliSession) -> None:
        if clear:
            s.selection.clear()
            console.print("Project selection cleared.")
            return
        project = await s.dashboard.project(project_id)
        s.selection.select(project.id)
        console.print(f"[green]Selected project[/] {project.name} ({project.id})")

    _run(action)


# --- features ---------------------------------------------------------------

@features_app.command("list")
def features_list(project_id: Optional[str] = typer.Option(None, "--project", "-p")):
    async def action(s: CliSession) -> None:
        features = await s.dashboard.features(project_id or s.selection.require())
        console.print(views.render_features(features))

    _run(action)


@features_app.command("show")
def features_show(feature_id: str = typer.Argument(...)):
    """Show a feature and its keys."""
    async def action(s: CliSession) -> None:
        feature = await s.dashboard.feature(feature_id)
        keys = await s.dashboard.keys(feature_id)
        console.print(views.render_keys(keys, feature))

    _run(action)


@features_app.command("create")
def features_create(
    name: str = typer.Argument(...),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
):
    async def action(s: CliSession) -> None:
        project = project_id or s.selection.require()
        _report(await s.dashboard.create_feature(name, project, description), f"Created feature {name}")

    _run(action)


@features_app.command("update")
def features_update(
    feature_id: str = typer.Argument(...),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    async def action(s: CliSession) -> None:
        _report(await s.dashboard.update_feature(feature_id, name, description), "Feature updated")

    _run(action)


@features_app.command("delete")
def features_delete(
    feature_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    if not yes:
        typer.confirm(f"Delete feature {feature_id} and all its keys?", abort=True)

    async def action(s: CliSession) -> None:
        _report(await s.dashboard.delete_feature(feature_id), "Feature deleted")

    _run(action)


# --- keys -------------------------------------------------------------------

@keys_app.command("list")
def keys_list(feature_id: str = typer.Argument(...)):
    async def action(s: CliSession) -> None:
        console.print(views.render_keys(await s.dashboard.keys(feature_id)))

    _run(action)


@keys_app.command("show")
def keys_show(key_id: str = typer.Argument(...)):
    """Show a key with its translations."""
    async def action(s: CliSession) -> None:
        key = await s.dashboard.key(key_id)
        translations = await s.dashboard.translations(key_id)
        console.print(views.render_translations(key, translations))

    _run(action)


@keys_app.command("create")
def keys_create(
    feature_id: str = typer.Argument(...),
    key: str = typer.Argument(..., help="Key name, e.g. login.title"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    async def action(s: CliSession) -> None:
        _report(await s.dashboard.create_key(key, feature_id, description), f"Created key {key}")

    _run(action)


@keys_app.command("update")
def keys_update(
    key_id: str = typer.Argument(...),
    key: Optional[str] = typer.Option(None, "--key", "-k"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
):
    async def action(s: CliSession) -> None:
        item = await s.dashboard.key(key_id)
        _report(await s.dashboard.update_key(item, key, description), "Key updated")

    _run(action)


@keys_app.command("delete")
def keys_delete(
    key_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    if not yes:
        typer.confirm(f"Delete key {key_id} and its translations?", abort=True)

    async def action(s: CliSession) -> None:
        item = await s.dashboard.key(key_id)
        _report(await s.dashboard.delete_key(item), "Key deleted")

    _run(action)


# --- languages --------------------------------------------------------------

@languages_app.command("list")
def languages_list(project_id: Optional[str] = typer.Option(None, "--project", "-p")):
    async def action(s: CliSession) -> None:
        languages = await s.dashboard.languages(project_id or s.selection.project_id)
        console.print(views.render_languages(languages))

    _run(action)


@languages_app.command("create")
def languages_create(
    locale: str = typer.Argument(..., help="Locale code, e.g. en or pt-BR"),
    name: str = typer.Argument(..., help="Display name"),
    inactive: bool = typer.Option(False, "--inactive", help="Add the language switched off"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
):
    async def action(s: CliSession) -> None:
        project = project_id or s.selection.project_id
        _report(
            await s.dashboard.create_language(locale, name, not inactive, project),
            f"Added language {name} ({locale})",
        )

    _run(action)


@languages_app.command("update")
def languages_update(
    language_id: str = typer.Argument(...),
    locale: Optional[str] = typer.Option(None, "--locale", "-l"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
    active: Optional[bool] = typer.Option(None, "--active/--inactive"),
):
    async def action(s: CliSession) -> None:
        _report(await s.dashboard.update_language(language_id, locale, name, active), "Language updated")

    _run(action)


@languages_app.command("delete")
def languages_delete(
    language_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    if not yes:
        typer.confirm(f"Delete language {language_id}?", abort=True)

    async def action(s: CliSession) -> None:
        _report(await s.dashboard.delete_language(language_id), "Language deleted")

    _run(action)


# --- translations -----------------------------------------------------------

async def _load_draft(s: CliSession, key_id: str):
    key = await s.dashboard.key(key_id)
    project_id = key.feature.project_id if key.feature and key.feature.project_id else s.selection.project_id
    translations = await s.dashboard.translations(key_id)
    languages = await s.dashboard.languages(project_id)
    draft = TranslationDraft(key_id)
    draft.seed(translations, languages)
    return key, draft


@translations_app.command("show")
def translations_show(
    key_id: str = typer.Argument(...),
    view: DraftFilter = typer.Option(DraftFilter.ALL, "--filter", "-f", case_sensitive=False),
):
    """Show a key's value in every active language."""
    async def action(s: CliSession) -> None:
        key, draft = await _load_draft(s, key_id)
        console.print(views.render_draft(draft, key, view))

    _run(action)


@translations_app.command("add")
def translations_add(
    key_id: str = typer.Argument(...),
    locale: str = typer.Argument(...),
    value: str = typer.Argument(...),
):
    async def action(s: CliSession) -> None:
        _report(await s.dashboard.create_translation(key_id, locale, value), f"Added {locale} translation")

    _run(action)


@translations_app.command("set")
def translations_set(
    key_id: str = typer.Argument(...),
    locale: str = typer.Argument(...),
    value: str = typer.Argument(...),
):
    """Create or overwrite one locale's value."""
    async def action(s: CliSession) -> None:
        existing = next((t for t in await s.dashboard.translations(key_id) if t.locale == locale), None)
        if existing is None:
            outcome = await s.dashboard.create_translation(key_id, locale, value)
        else:
            outcome = await s.dashboard.update_translation(existing.id, key_id, value)
        _report(outcome, f"Saved {locale} translation")

    _run(action)


@translations_app.command("delete")
def translations_delete(
    key_id: str = typer.Argument(...),
    locale: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    if not yes:
        typer.confirm(f"Delete the {locale} translation?", abort=True)

    async def action(s: CliSession) -> None:
        existing = next((t for t in await s.dashboard.translations(key_id) if t.locale == locale), None)
        if existing is None:
            console.print(f"[yellow]No {locale} translation to delete.[/]")
            return
        _report(await s.dashboard.delete_translation(existing.id, key_id), "Translation deleted")

    _run(action)


@translations_app.command("edit")
def translations_edit(
    key_id: str = typer.Argument(...),
    values: Optional[List[str]] = typer.Option(
        None, "--set", "-s", help="LOCALE=VALUE; repeat for several locales. Prompts for every locale when omitted."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the changes without saving"),
):
    """Edit several locales of one key and save them in a single request."""
    pairs = _parse_pairs(values, "--set")

    async def action(s: CliSession) -> None:
        key, draft = await _load_draft(s, key_id)
        if pairs:
            for locale, value in pairs:
                if locale not in draft.locales:
                    raise typer.BadParameter(f"'{locale}' is not an active language", param_hint="--set")
                draft.set_value(locale, value)
        else:
            for locale in draft.locales:
                draft.set_value(locale, typer.prompt(locale, default=draft.value(locale)))

        console.print(views.render_draft(draft, key))
        if not draft.has_changes:
            console.print("No changes.")
            return
        if dry_run:
            console.print(f"[yellow]Dry run:[/] {len(draft.dirty_locales)} change(s) not saved.")
            return
        count = len(draft.dirty_locales)
        outcome = await draft.save(s.dashboard)
        console.print(f"{key.key}:", views.render_save_status(s.dashboard.statuses.get(key_id)))
        _report(outcome, f"Saved {count} change(s)")

    _run(action)


def _search_state(
    s: CliSession,
    query: str,
    locale: Optional[str],
    feature_id: Optional[str],
    limit: Optional[int],
    sort_by: Optional[str],
    order: Optional[str],
) -> SearchState:
    state = SearchState(project_id=s.selection.project_id, page_size=s.config.page_size)
    state.set_query(query)
    state.set_locale(locale)
    state.set_feature(feature_id)
    try:
        if limit:
            state.set_page_size(limit)
        if sort_by:
            state.toggle_sort(sort_by)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    if order:
        if order not in ("asc", "desc"):
            raise typer.BadParameter("Order must be 'asc' or 'desc'", param_hint="--order")
        state.sort_order = order
    return state


@translations_app.command("search")
def translations_search(
    query: str = typer.Argument("", help="Text to look for in keys and values"),
    locale: Optional[str] = typer.Option(None, "--locale", "-l"),
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
    page: int = typer.Option(1, "--page"),
    limit: Optional[int] = typer.Option(None, "--limit"),
    sort_by: Optional[str] = typer.Option(None, "--sort-by"),
    order: Optional[str] = typer.Option(None, "--order"),
):
    async def action(s: CliSession) -> None:
        state = _search_state(s, query, locale, feature_id, limit, sort_by, order)
        state.set_page(page)
        _print_search_page(await s.dashboard.search_translations(state.to_params()), state)

    _run(action)


BROWSE_HELP = (
    "Type text to search (blank clears it). "
    ":n next page, :p previous page, :sort COLUMN, :locale CODE, :feature ID, :clear, :q quit"
)


def _print_search_page(result: PaginatedTranslations, state: SearchState) -> None:
    console.print(views.render_search_results(result))
    if not result.data and state.has_active_filters:
        console.print("[dim]No matches. Try clearing some filters.[/]")


async def _browse_step(runner: SearchRunner, state: SearchState, entry: str) -> Optional[PaginatedTranslations]:
    """Apply one line of browse input; typed text waits for the settle delay, commands do not."""
    command, _, argument = entry.partition(" ")
    argument = argument.strip()
    if command == ":n":
        last_page = runner.latest_result.meta.total_pages if runner.latest_result else 1
        state.set_page(min(state.page + 1, max(last_page, 1)))
    elif command == ":p":
        state.set_page(state.page - 1)
    elif command == ":sort":
        try:
            state.toggle_sort(argument)
        except ValueError as exc:
            console.print(f"[red]{exc}[/]")
            return None
    elif command == ":locale":
        state.set_locale(argument or None)
    elif command == ":feature":
        state.set_feature(argument or None)
    elif command == ":clear":
        state.clear_filters()
    elif command.startswith(":"):
        console.print(BROWSE_HELP)
        return None
    else:
        state.set_query(entry)
        return await runner.run(state)
    return await runner.run_now(state)


@translations_app.command("browse")
def translations_browse(
    query: str = typer.Argument("", help="Initial search text"),
    locale: Optional[str] = typer.Option(None, "--locale", "-l"),
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
):
    """Search interactively, refining the query and paging through the results."""
    async def action(s: CliSession) -> None:
        state = _search_state(s, query, locale, feature_id, None, None, None)
        runner = SearchRunner(s.dashboard, debounce_seconds=s.config.search_debounce_seconds)
        console.print(f"[dim]{BROWSE_HELP}[/]")
        result = await runner.run_now(state)
        while True:
            if result is not None:
                _print_search_page(result, state)
            entry = typer.prompt("Search", default="", show_default=False).strip()
            if entry == ":q":
                break
            result = await _browse_step(runner, state, entry)

    _run(action)


@translations_app.command("export")
def translations_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="CSV file to write"),
    query: str = typer.Option("", "--query", "-q"),
    locale: Optional[str] = typer.Option(None, "--locale", "-l"),
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
    page: int = typer.Option(1, "--page"),
    all_pages: bool = typer.Option(False, "--all-pages", help="Export every page, not just one"),
):
    """Export translations as CSV: one row per key, one column per active locale."""
    async def action(s: CliSession) -> None:
        state = _search_state(s, query, locale, feature_id, None, None, None)
        if all_pages:
            items = await fetch_all_pages(s.dashboard, state)
        else:
            state.set_page(page)
            items = (await s.dashboard.search_translations(state.to_params())).data
        if not items:
            console.print("[yellow]Nothing to export.[/]")
            return

        languages = await s.dashboard.languages(s.selection.project_id)
        locales = active_export_locales(items, languages)
        path = str(output) if output else os.path.join(s.config.export_folder, format_filename())
        written = write_csv(path, generate_csv(items, locales))
        keys = len({item.key_name for item in items})
        console.print(f"[green]Exported[/] {keys} key(s) x {len(locales)} locale(s) to {written}")

    _run(action)


@translations_app.command("import")
def translations_import(
    feature_id: str = typer.Argument(..., help="Feature the keys belong to"),
    csv_file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    renames: Optional[List[str]] = typer.Option(
        None, "--rename", "-r", help="ORIGINAL=NEW header mapping, e.g. English=en; repeatable"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview the mapping without uploading"),
):
    """
    Upload a CSV of translations.

    Columns are kept only when their (renamed) header is 'key' or the locale
    code of one of the project's languages; everything else is dropped.
    """
    rename_map: Dict[str, str] = dict(_parse_pairs(renames, "--rename"))

    async def action(s: CliSession) -> None:
        document = parse_csv(csv_file.read_bytes())
        unknown = [name for name in rename_map if name not in document.headers]
        if unknown:
            raise typer.BadParameter(f"No column named {', '.join(unknown)} in {csv_file.name}",
                                     param_hint="--rename")
        renamed = [rename_map.get(header, header) for header in document.headers]

        feature = await s.dashboard.feature(feature_id)
        languages = await s.dashboard.languages(feature.project_id or s.selection.project_id)
        console.print(views.render_csv_preview(preview(document, s.config.preview_row_limit), renamed))

        upload = build_upload_csv(document, renamed, [language.locale for language in languages])
        console.print(f"Uploading columns: {upload.split(chr(10), 1)[0].replace(',', ', ')}")
        if dry_run:
            console.print("[yellow]Dry run:[/] nothing uploaded.")
            return

        outcome = await s.dashboard.bulk_upload(feature_id, csv_file.name, upload.encode("utf-8"))
        if outcome.value is not None:
            console.print(views.render_upload_result(outcome.value))
        _report(outcome)

    _run(action)


# --- statistics and focus mode ----------------------------------------------

@app.command()
def stats(
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
):
    """Completion metrics, missing translations and system health."""
    async def action(s: CliSession) -> None:
        statistics = await s.dashboard.statistics(feature_id, project_id or s.selection.project_id)
        console.print(views.render_statistics(statistics))

    _run(action)


@app.command()
def focus(
    locale: str = typer.Argument(..., help="Locale to fill in"),
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
):
    """Translate missing values for one locale, one key at a time."""
    async def action(s: CliSession) -> None:
        project_id = s.selection.require()
        statistics = await s.dashboard.statistics(feature_id, project_id)
        queue = build_focus_queue(statistics, locale)
        if not queue:
            console.print(f"[green]Nothing missing for {locale}.[/]")
            return

        session = FocusSession(queue, s.dashboard)
        while not session.complete:
            console.print(views.render_focus_task(session, await session.context()))
            value = typer.prompt("Translation (blank skips, :q stops)", default="", show_default=False)
            if value.strip() == ":q":
                break
            if not value.strip():
                session.skip()
                continue
            outcome = await session.submit(value)
            if outcome is not None and not outcome.ok:
                console.print(views.render_error(outcome.error_message or "Save failed", hint="Try again or skip."))
        console.print(views.render_focus_task(session) if session.complete else
                      f"Stopped after {session.translated} translation(s), {session.skipped} skipped.")

    _run(action)


# --- AI translation ---------------------------------------------------------

@ai_app.command("translate-key")
def ai_translate_key(
    key_id: str = typer.Argument(...),
    locales: Optional[List[str]] = typer.Option(
        None, "--locale", "-l", help="Target locale; repeatable. Defaults to every missing locale."
    ),
):
    async def action(s: CliSession) -> None:
        targets = list(locales or [])
        if not targets:
            _, draft = await _load_draft(s, key_id)
            targets = draft.missing_locales()
        if not targets:
            console.print("[green]Every active locale already has a value.[/]")
            return
        console.print(f"AI translating {len(targets)} missing locale(s): {', '.join(targets)}")
        console.print(views.render_ai_result(_report(await s.dashboard.ai_translate_key(key_id, targets))))

    _run(action)


@ai_app.command("translate-batch")
def ai_translate_batch(
    feature_id: Optional[str] = typer.Option(None, "--feature", "-f"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
    locales: Optional[List[str]] = typer.Option(None, "--locale", "-l"),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    """AI-translate every missing value of a feature or project."""
    if not yes:
        typer.confirm("Translate all missing values with AI?", abort=True)

    async def action(s: CliSession) -> None:
        project = project_id or (None if feature_id else s.selection.require())
        outcome = await s.dashboard.ai_translate_batch(feature_id, project, list(locales) if locales else None)
        console.print(views.render_ai_batch_result(_report(outcome)))

    _run(action)
