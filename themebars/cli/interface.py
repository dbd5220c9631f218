# themebars/cli/interface.py
import asyncio
import functools
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click
from click_option_group import optgroup
import structlog

from themebars import __version__ as app_version
from themebars.config.loader import load_and_merge_configs, resolve_profile
from themebars.config.settings import OutputFormat, ThemeConfig
from themebars.core.assembler import FileSystemAssembler
from themebars.core.engine import ThemeEngine, create_instance
from themebars.core.output import emit_rendered
from themebars.exceptions import ThemebarsError, ConfigError, TemplateError
from themebars.logging_setup import configure_logging, level_for_verbosity

log = structlog.get_logger(__name__)

THEME_CONFIG_FILENAME = "config.json"

def _parse_key_values(pairs: Tuple[str, ...]) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected KEY=VALUE, got '{pair}'")
        key, value = pair.split("=", 1)
        parsed[key.strip()] = value
    return parsed

def _load_json_file(path: Optional[Path], what: str) -> Dict[str, Any]:
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read {what} file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{what.capitalize()} file {path} must contain a JSON object")
    return data

def _load_theme_settings(theme_dir: Path) -> Dict[str, Any]:
    # a theme's config.json carries its settings under "settings".
    config_file = theme_dir / THEME_CONFIG_FILENAME
    if not config_file.is_file():
        return {}
    settings = _load_json_file(config_file, "theme config").get("settings", {})
    return settings if isinstance(settings, dict) else {}

async def _render_pages(config: ThemeConfig):
    assembler = FileSystemAssembler(config.theme_dir, config.templates_dir, config.lang_dir)
    data = config.render_data()
    engine = await create_instance(data, assembler)
    await engine.load_theme(config.template_paths, config.accept_language)
    target = config.template_paths[0] if len(config.template_paths) == 1 else list(config.template_paths)
    return engine.render_theme(target, data)

def _build_theme_config(ctx: click.Context, params: Dict[str, Any]) -> ThemeConfig:
    raw_config = load_and_merge_configs()
    options = resolve_profile(raw_config, params.get("config_profile"))

    if ctx.get_parameter_source("theme_dir") == click.core.ParameterSource.COMMANDLINE or "theme_dir" not in options:
        options["theme_dir"] = params["theme_dir"]
    theme_dir = Path(options["theme_dir"])

    theme_settings = _load_theme_settings(theme_dir)
    theme_settings.update(options.get("theme_settings", {}))
    options["theme_settings"] = theme_settings

    settings = dict(options.get("settings", {}))
    settings.update(_parse_key_values(params.get("settings_pairs") or ()))
    options["settings"] = settings

    if params.get("accept_language"):
        options["accept_language"] = params["accept_language"]
    if params.get("output_format_str"):
        options["output_format"] = OutputFormat.from_string(params["output_format_str"])
    if params.get("output_file"):
        options["output_file"] = params["output_file"]

    return ThemeConfig(
        template_paths=list(params.get("template_paths") or ()),
        context=_load_json_file(params.get("context_file"), "context"),
        remote=params.get("remote", False),
        remote_data=_load_json_file(params.get("remote_data_file"), "remote data"),
        **options,
    )

def _handle_errors(func):
    # maps application errors onto a clean CLI exit.
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit as e: raise e
        except ThemebarsError as e:
            log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(1)
        except click.ClickException as e:
            log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
            e.show(); sys.exit(e.exit_code)
        except Exception as e:
            log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
            click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
            sys.exit(1)
    return wrapper


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@click.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="themebars", prog_name="themebars", help="Show version and exit.")
def main_cli_group(verbosity_level: int, force_json_logs: bool):
    """themebars: render Handlebars storefront themes with settings,
    translations and page context."""
    configure_logging(log_level_str=level_for_verbosity(verbosity_level), force_json_logs=force_json_logs)


@main_cli_group.command("render")
@click.argument("template_paths", nargs=-1, required=False)
@optgroup.group("Theme Options", help="Where the theme lives and how it is configured.")
@optgroup.option("-d", "--theme-dir", "theme_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default=Path("."), help="Theme root containing templates/ and lang/. Default: current directory.")
@optgroup.option("-s", "--setting", "settings_pairs", multiple=True, metavar="KEY=VALUE", help="Site setting, e.g. cdn_url=https://cdn.example.com.")
@optgroup.option("--config-profile", "config_profile", default=None, help="Load a profile from config file(s).")
@optgroup.group("Request Options", help="Request-scoped data for the render.")
@optgroup.option("-l", "--accept-language", "accept_language", default=None, help="Accept-Language header value used to pick the locale.")
@optgroup.option("-c", "--context-file", "context_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="JSON file with the page context.")
@optgroup.option("--remote/--no-remote", "remote", default=False, help="Render as an ajax request, wrapping output with remote data.")
@optgroup.option("--remote-data-file", "remote_data_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="JSON file with remote (ajax) data.")
@optgroup.group("Output Options", help="Where and how rendered output is written.")
@optgroup.option("-F", "--output-format", "output_format_str", type=click.Choice([f.value for f in OutputFormat]), default=None, help="Output format. Default: html for a single page, json otherwise.")
@optgroup.option("-o", "--output", "output_file", type=click.Path(dir_okay=False, writable=True, path_type=Path), default=None, help="Path to write the output to.")
@click.pass_context
@_handle_errors
def render_command(ctx: click.Context, **cli_params: Any):
    """Render one or more theme templates (e.g. pages/home)."""
    config = _build_theme_config(ctx, cli_params)
    log.debug("render_command_invoked", templates=config.template_paths, theme_dir=str(config.theme_dir))
    result = asyncio.run(_render_pages(config))
    emit_rendered(result, config.effective_output_format, config.output_file)
    if config.output_file:
        click.echo(f"Info: Output written to: {config.output_file}", err=True)


@main_cli_group.command("check")
@click.option("-d", "--theme-dir", "theme_dir", type=click.Path(exists=True, file_okay=False, path_type=Path), default=Path("."), help="Theme root containing templates/.")
@_handle_errors
def check_command(theme_dir: Path):
    """Compile every template in a theme and report the ones that fail."""
    assembler = FileSystemAssembler(theme_dir)
    template_names = assembler.list_templates()
    sources = {name: assembler.read_template(name) for name in template_names}
    engine = ThemeEngine({}, {}, assembler)
    processor = engine.get_template_processor()

    failures: List[str] = []
    for name, source in sources.items():
        try:
            processor({name: source})
        except TemplateError as e:
            failures.append(name)
            click.secho(f"FAIL {name}: {e}", fg="red", err=True)
        else:
            click.echo(f"ok   {name}")

    click.echo(f"{len(template_names) - len(failures)}/{len(template_names)} templates compiled", err=True)
    if failures:
        sys.exit(1)
