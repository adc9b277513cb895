"""Command line interface for stickyforms."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, NoReturn, Optional

import click

from stickyforms.cli.commands.settings import settings as settings_command
from stickyforms.cli.logging_config import configure_logging
from stickyforms.core.exceptions import N8nClientError, StickyFormsError
from stickyforms.core.models import ProcessedMetadata
from stickyforms.core.settings import SettingsManager, StickyFormsSettings
from stickyforms.forms.payload import build_payload
from stickyforms.forms.state import FormState
from stickyforms.metadata.extractor import configure_default_cache
from stickyforms.metadata.pipeline import extract_and_process_metadata
from stickyforms.n8n.client import N8nClient
from stickyforms.n8n.workflows import (
    EXECUTION_TYPE_FILTERS,
    SORT_KEYS,
    STATUS_FILTERS,
    filter_workflows,
    get_execution_type,
    get_workflow_stats,
    get_workflow_status,
    sort_workflows,
)


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_json_file(path: Path, what: str) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        _fail(f"{what} {path} is not valid JSON: {e}")
    except OSError as e:
        _fail(f"Cannot read {what.lower()} {path}: {e}")


def _get_settings(ctx: click.Context) -> StickyFormsSettings:
    return ctx.obj["settings"]


def _process_workflow_file(path: Path) -> ProcessedMetadata:
    workflow = _load_json_file(path, "Workflow file")
    processed = extract_and_process_metadata(workflow)
    if not processed.success:
        _fail(processed.error or processed.message or "No form metadata found")
    return processed


def _load_form_values(path: Path) -> dict[str, Any]:
    values = _load_json_file(path, "Data file")
    if not isinstance(values, dict):
        _fail(f"Data file {path} must contain a JSON object of field values")
    return values


def _echo_summary(summary: list[dict[str, Any]]) -> None:
    for entry in summary:
        for error in entry["errors"]:
            click.echo(f"  - {entry['label']} ({entry['name']}): {error}", err=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Show INFO logs")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Settings file (default: ~/.stickyforms/settings.json)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, settings_path: Optional[Path]) -> None:
    """Build forms from UI_METADATA sticky notes in n8n workflows."""
    configure_logging(verbose)
    manager = SettingsManager(settings_path)
    loaded = manager.load()
    configure_default_cache(loaded.cache.max_entries)
    ctx.ensure_object(dict)
    ctx.obj["settings_manager"] = manager
    ctx.obj["settings"] = loaded


cli.add_command(settings_command)


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output processed metadata as JSON")
def inspect(workflow_file: Path, output_json: bool) -> None:
    """Show the form described by a workflow's UI_METADATA note."""
    processed = _process_workflow_file(workflow_file)

    if output_json:
        click.echo(json.dumps(processed.to_dict(), indent=2, ensure_ascii=False))
        return

    source = processed.source
    if source is not None:
        click.echo(f"Metadata from note: {source.node_name}")
    click.echo(f"{len(processed.parameters)} fields in {len(processed.groups)} groups")
    for group in processed.groups:
        click.echo(f"\n{group.label}")
        for parameter in group.parameters:
            required = " *" if parameter.required else ""
            click.echo(f"  {parameter.name:25} {parameter.type.value:15} {parameter.label}{required}")


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(workflow_file: Path, data_file: Path) -> None:
    """Validate form values against a workflow's form."""
    processed = _process_workflow_file(workflow_file)
    state = FormState(processed.parameters, initial_values=_load_form_values(data_file))

    result = state.validate_all()
    if result.valid:
        click.echo(f"✓ All {len(processed.parameters)} fields are valid")
        return

    click.echo(f"✗ {len(result.invalid_fields)} invalid fields:", err=True)
    _echo_summary(state.summary())
    sys.exit(1)


@cli.command()
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("data_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--skip-validation", is_flag=True, help="Build the payload even if fields are invalid")
@click.pass_context
def payload(ctx: click.Context, workflow_file: Path, data_file: Path, skip_validation: bool) -> None:
    """Print the submission payload for form values."""
    processed = _process_workflow_file(workflow_file)
    state = FormState(processed.parameters, initial_values=_load_form_values(data_file))

    if not skip_validation and not state.validate_all().valid:
        click.echo("✗ Form is invalid:", err=True)
        _echo_summary(state.summary())
        sys.exit(1)

    settings = _get_settings(ctx)
    try:
        body = asyncio.run(
            build_payload(
                state.values,
                processed.parameters,
                source=settings.forms.source_tag,
                environment=settings.forms.environment,
            )
        )
    except OSError as e:
        _fail(f"Cannot read uploaded file: {e}")
    click.echo(json.dumps(body, indent=2, ensure_ascii=False))


@cli.command()
@click.argument("workflow_id")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write to a file")
@click.pass_context
def fetch(ctx: click.Context, workflow_id: str, output: Optional[Path]) -> None:
    """Download a workflow definition from n8n."""
    client = N8nClient.from_settings(_get_settings(ctx))
    try:
        workflow = client.get_workflow(workflow_id)
    except N8nClientError as e:
        _fail(str(e))

    text = json.dumps(workflow, indent=2, ensure_ascii=False)
    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    click.echo(f"Saved workflow {workflow_id} to {output}")


@cli.command()
@click.option(
    "--status", type=click.Choice(STATUS_FILTERS), default="todos", help="Filter by status"
)
@click.option(
    "--type",
    "execution_type",
    type=click.Choice(EXECUTION_TYPE_FILTERS),
    default="todos",
    help="Filter by execution type",
)
@click.option("--search", default=None, help="Match name, id or tag")
@click.option("--sort", "sort_by", type=click.Choice(SORT_KEYS), default="name", help="Sort order")
@click.option("--archived", is_flag=True, help="Include archived workflows")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def workflows(
    ctx: click.Context,
    status: str,
    execution_type: str,
    search: Optional[str],
    sort_by: str,
    archived: bool,
    output_json: bool,
) -> None:
    """List workflows on the configured n8n instance."""
    client = N8nClient.from_settings(_get_settings(ctx))
    try:
        all_workflows = client.list_workflows()
    except N8nClientError as e:
        _fail(str(e))

    filters = {"showArchived": archived, "status": status, "executionType": execution_type, "search": search}
    listed = sort_workflows(filter_workflows(all_workflows, filters), sort_by)
    stats = get_workflow_stats(listed)

    if output_json:
        click.echo(json.dumps({"workflows": listed, "stats": stats}, indent=2, ensure_ascii=False))
        return

    if not listed:
        click.echo("No workflows match the filters.")
        return

    for workflow in listed:
        click.echo(
            f"{workflow.get('id', ''):>8}  {get_workflow_status(workflow):9} "
            f"{get_execution_type(workflow):10} {workflow.get('name', '')}"
        )
    click.echo(
        f"\n{stats['total']} workflows ({stats['active']} active, {stats['inactive']} inactive; "
        f"{stats['webhook']} webhook, {stats['manual']} manual, {stats['scheduled']} scheduled)"
    )


def main() -> None:
    """Console script entry point."""
    try:
        cli(obj={})
    except StickyFormsError as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
