"""Settings management CLI commands."""

import json

import click

from stickyforms.core.exceptions import SettingsError


@click.group()
def settings() -> None:
    """Manage stickyforms settings."""
    pass


@settings.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """Show current settings, including environment overrides.

    The n8n API key is masked.
    """
    manager = ctx.obj["settings_manager"]
    settings_dict = manager.load().model_dump()
    settings_dict["n8n"]["api_key"] = manager.mask_value(settings_dict["n8n"]["api_key"])

    click.echo(f"Settings file: {manager.settings_path}")
    click.echo(json.dumps(settings_dict, indent=2))


@settings.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def set_value(ctx: click.Context, key: str, value: str) -> None:
    """Set a value, e.g. 'stickyforms settings set n8n.base_url https://n8n.example.com'."""
    manager = ctx.obj["settings_manager"]
    try:
        manager.set_value(key, value)
    except SettingsError as e:
        raise click.ClickException(str(e)) from e

    shown = manager.mask_value(value) if key == "n8n.api_key" else value
    click.echo(f"✓ Set {key} = {shown}")
