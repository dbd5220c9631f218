import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from themebars.cli.interface import main_cli_group


@pytest.fixture
def runner():
    return CliRunner()


def test_cli_renders_single_page_as_html(runner, theme_dir):
    """
    Renders one page with settings from the command line and a context file.
    """
    with runner.isolated_filesystem():
        Path("context.json").write_text(json.dumps({"store_name": "Shop", "message": "hi"}))
        result = runner.invoke(
            main_cli_group,
            ["render", "pages/home", "-d", str(theme_dir), "-l", "fr", "-c", "context.json"],
            catch_exceptions=False,
        )

    assert result.exit_code == 0
    assert "<h1>Bienvenue</h1><header>Shop</header><p>hi</p>" in result.output


def test_cli_renders_multiple_pages_as_json(runner, theme_dir):
    with runner.isolated_filesystem():
        Path("context.json").write_text(json.dumps({"store_name": "Shop", "product": {"name": "Mug"}}))
        result = runner.invoke(
            main_cli_group,
            ["render", "pages/home", "pages/product", "-d", str(theme_dir), "-c", "context.json"],
            catch_exceptions=False,
        )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["pages/product"] == "<h2>Mug</h2><header>Shop</header>"
    assert payload["pages/home"].startswith("<h1>Welcome</h1>")


def test_cli_remote_render_wraps_data(runner, theme_dir):
    with runner.isolated_filesystem():
        Path("remote.json").write_text(json.dumps({"product": {"name": "Cup"}}))
        result = runner.invoke(
            main_cli_group,
            ["render", "pages/product", "-d", str(theme_dir), "--remote", "--remote-data-file", "remote.json"],
            catch_exceptions=False,
        )

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["data"] == {"product": {"name": "Cup"}}
    assert payload["content"] == "<h2>Cup</h2><header></header>"


def test_cli_settings_and_theme_config_reach_helpers(runner, theme_dir):
    (theme_dir / "templates" / "pages" / "assets.html").write_text(
        '{{cdn "/assets/app.js"}} {{cdn "img:/logo.png"}}', encoding="utf-8"
    )
    with runner.isolated_filesystem():
        result = runner.invoke(
            main_cli_group,
            [
                "render", "pages/assets", "-d", str(theme_dir),
                "-s", "cdn_url=https://cdn.example.com", "-s", "theme_version_id=v1",
            ],
            catch_exceptions=False,
        )

    assert result.exit_code == 0
    assert "https://cdn.example.com/stencil/v1/app.js https://img.cdn.com/logo.png" in result.output


def test_cli_profile_from_project_config(runner, theme_dir):
    (theme_dir / "templates" / "pages" / "cdn.html").write_text('{{cdn "/assets/a.css"}}', encoding="utf-8")
    with runner.isolated_filesystem():
        Path(".themebars.toml").write_text(
            f'theme_dir = "{theme_dir.as_posix()}"\n'
            "[settings]\n"
            'cdn_url = "https://cdn.example.com"\n'
            "[profiles.staging.settings]\n"
            'theme_version_id = "staging"\n'
        )
        result = runner.invoke(
            main_cli_group, ["render", "pages/cdn", "--config-profile", "staging"], catch_exceptions=False
        )

    assert result.exit_code == 0
    assert "https://cdn.example.com/stencil/staging/a.css" in result.output


def test_cli_writes_output_file(runner, theme_dir):
    with runner.isolated_filesystem():
        result = runner.invoke(
            main_cli_group,
            ["render", "header", "-d", str(theme_dir), "-o", "out/header.html"],
            catch_exceptions=False,
        )
        written = Path("out/header.html").read_text(encoding="utf-8")

    assert result.exit_code == 0
    assert written == "<header></header>\n"


def test_cli_missing_template_is_reported(runner, theme_dir):
    with runner.isolated_filesystem():
        result = runner.invoke(main_cli_group, ["render", "pages/nope", "-d", str(theme_dir)])

    assert result.exit_code == 1
    assert "Error: template 'pages/nope' not found" in result.output


def test_cli_unknown_profile_is_reported(runner, theme_dir):
    with runner.isolated_filesystem():
        result = runner.invoke(main_cli_group, ["render", "header", "-d", str(theme_dir), "--config-profile", "prod"])

    assert result.exit_code == 1
    assert "Profile 'prod' not found" in result.output


def test_cli_check_compiles_all_templates(runner, theme_dir):
    result = runner.invoke(main_cli_group, ["check", "-d", str(theme_dir)], catch_exceptions=False)

    assert result.exit_code == 0
    assert "ok   pages/home" in result.output
    assert "3/3 templates compiled" in result.output
