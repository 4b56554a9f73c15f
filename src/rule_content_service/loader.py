"""
Startup loading of rule content and group definitions

Rule content directory layout:

    <rules>/<rule>/plugin.yaml            name, node_id, product_code, python_module
    <rules>/<rule>/summary.md             optional rule level texts
    <rules>/<rule>/<ERROR_KEY>/metadata.yaml
    <rules>/<rule>/<ERROR_KEY>/generic.md optional error key texts

Groups file layout:

    groups:
      - id: performance        # optional, derived from the name
        name: Performance
        description: ...
        tags: [performance, sap]
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml
from pydantic import ValidationError

from .config import Config
from .content import ContentCatalog, Group, GroupSet, RuleContent
from .errors import ContentLoadError

logger = logging.getLogger(__name__)

PLUGIN_FILE = "plugin.yaml"
METADATA_FILE = "metadata.yaml"
RULE_TEXT_FILES = ("summary", "reason", "resolution", "more_info")
ERROR_KEY_TEXT_FILES = ("generic", "summary", "reason", "resolution", "more_info")


def _plain(value: Any) -> Any:
    """Replace YAML timestamps with ISO strings so bodies hold plain data only"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return _plain(yaml.safe_load(f))
    except yaml.YAMLError as e:
        raise ContentLoadError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ContentLoadError(f"Cannot read {path}: {e}") from e


def _read_texts(directory: Path, names) -> Dict[str, str]:
    texts = {}
    for name in names:
        text_file = directory / f"{name}.md"
        if text_file.is_file():
            texts[name] = text_file.read_text(encoding="utf-8")
    return texts


def _load_error_keys(rule_dir: Path) -> Dict[str, Dict[str, Any]]:
    error_keys = {}
    for key_dir in sorted(p for p in rule_dir.iterdir() if p.is_dir()):
        metadata_file = key_dir / METADATA_FILE
        if not metadata_file.is_file():
            continue
        metadata = _read_yaml(metadata_file) or {}
        if not isinstance(metadata, dict):
            raise ContentLoadError(f"{metadata_file} must contain a mapping")
        error_key = {"metadata": metadata}
        error_key.update(_read_texts(key_dir, ERROR_KEY_TEXT_FILES))
        error_keys[key_dir.name] = error_key
    return error_keys


def load_rule(rule_dir: Path) -> RuleContent:
    """Parse a single rule directory"""
    plugin = _read_yaml(rule_dir / PLUGIN_FILE)
    if not isinstance(plugin, dict):
        raise ContentLoadError(f"{rule_dir / PLUGIN_FILE} must contain a mapping")

    python_module = plugin.get("python_module")
    if not python_module or not isinstance(python_module, str):
        raise ContentLoadError(f"{rule_dir / PLUGIN_FILE} does not define 'python_module'")

    body: Dict[str, Any] = {"plugin": plugin}
    body.update(_read_texts(rule_dir, RULE_TEXT_FILES))
    body["error_keys"] = _load_error_keys(rule_dir)

    return RuleContent(plugin=python_module, body=body)


def load_rule_content(path: str) -> ContentCatalog:
    """
    Load every rule found below the given directory.

    Raises:
        ContentLoadError: the directory is missing or a rule is invalid
    """
    root = Path(path)
    if not root.is_dir():
        raise ContentLoadError(f"Rule content directory not found: {path}")

    rules = [load_rule(plugin_file.parent) for plugin_file in sorted(root.rglob(PLUGIN_FILE))]
    catalog = ContentCatalog.from_rules(rules)

    logger.info(f"Loaded {len(catalog)} rules from {root}")
    return catalog


def _group_id(entry: Dict[str, Any]) -> Any:
    if entry.get("id"):
        return entry["id"]
    name = entry.get("name")
    if isinstance(name, str):
        return name.strip().lower().replace(" ", "_")
    return name


def load_groups(path: str) -> GroupSet:
    """
    Load group definitions from a YAML file.

    Raises:
        ContentLoadError: the file is missing or malformed
    """
    groups_file = Path(path)
    if not groups_file.is_file():
        raise ContentLoadError(f"Groups configuration file not found: {path}")

    document = _read_yaml(groups_file) or {}
    if not isinstance(document, dict) or not isinstance(document.get("groups", []), list):
        raise ContentLoadError(f"{path} must contain a 'groups' list")

    groups = []
    for entry in document.get("groups", []):
        if not isinstance(entry, dict):
            raise ContentLoadError(f"Invalid group entry in {path}: {entry!r}")
        try:
            groups.append(Group(
                id=_group_id(entry),
                name=entry.get("name"),
                description=entry.get("description"),
                tags=entry.get("tags"),
            ))
        except ValidationError as e:
            raise ContentLoadError(f"Invalid group entry in {path}: {e}") from e

    group_set = GroupSet.from_groups(groups)
    logger.info(f"Loaded {len(group_set)} groups from {groups_file}")
    return group_set


def load_content(config: Config) -> Tuple[ContentCatalog, GroupSet]:
    """Load the catalog and group set from the configured locations"""
    return load_rule_content(config.content.path), load_groups(config.content.groups_path)
