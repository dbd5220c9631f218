# themebars/config/loader.py
"""
Handles loading and merging of configurations from TOML files.
"""
import toml
from pathlib import Path
from typing import Any, Dict, Optional
import structlog

from themebars.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".themebars.toml", "themebars.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "themebars"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

CONFIG_KEY_TO_THEMECONFIG_ATTR_MAP: Dict[str, str] = {
    "theme_dir": "theme_dir",
    "templates_dir": "templates_dir",
    "lang_dir": "lang_dir",
    "accept_language": "accept_language",
    "settings": "settings",
    "theme_settings": "theme_settings",
    "output_format": "output_format",
    "output_file": "output_file",
}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file(): return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigError(f"Could not read config file {file_path}: {e}") from e
    return data.get("tool", {}).get("themebars", {}) if file_path.name == "pyproject.toml" else data

def _merge_section(target: Dict[str, Any], source: Dict[str, Any]):
    # nested tables (settings, theme_settings) merge key by key; profiles merge by name.
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            merged = dict(target[key])
            merged.update(value)
            target[key] = merged
        else:
            target[key] = value

def load_and_merge_configs(search_dir: Optional[Path] = None) -> Dict[str, Any]:
    search_dir = search_dir or Path.cwd()
    merged_toml_data: Dict[str, Any] = {}
    if USER_CONFIG_FILE.is_file():
        log.info("loading_user_global_config", path=str(USER_CONFIG_FILE))
        _merge_section(merged_toml_data, _load_toml_file_data(USER_CONFIG_FILE))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = search_dir / filename
        if candidate.is_file():
            project_settings = _load_toml_file_data(candidate)
            if project_settings:
                log.info("loading_project_local_config", path=str(candidate))
                _merge_section(merged_toml_data, project_settings)
                break
    if not merged_toml_data: log.debug("no_configuration_files_loaded")
    return merged_toml_data

def resolve_profile(raw_config: Dict[str, Any], profile_name: Optional[str]) -> Dict[str, Any]:
    # returns theme config keyword arguments with the named profile layered on top.
    options: Dict[str, Any] = {}
    for toml_k, attr in CONFIG_KEY_TO_THEMECONFIG_ATTR_MAP.items():
        if toml_k in raw_config:
            options[attr] = raw_config[toml_k]
    if profile_name:
        profile_values = raw_config.get("profiles", {}).get(profile_name)
        if not profile_values:
            raise ConfigError(f"Profile '{profile_name}' not found in configuration files")
        log.info("applying_profile_settings", profile=profile_name)
        profile_options = {
            attr: profile_values[toml_k]
            for toml_k, attr in CONFIG_KEY_TO_THEMECONFIG_ATTR_MAP.items()
            if toml_k in profile_values
        }
        _merge_section(options, profile_options)
    return options
