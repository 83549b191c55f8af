"""Configuration loading for modelgen (.modelgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .emitter import DEFAULT_DOCS_SITE, parse_type_override
from .mapping import PRIMITIVES
from .models import DocumentRef
from .sources import is_url

CONFIG_FILENAME = ".modelgen.yml"

DEFAULT_DOCS_ROOT = "https://raw.githubusercontent.com/discord/discord-api-docs/main/docs"
DEFAULT_PACKAGE = "discord_models"
DEFAULT_OUTPUT_DIR = Path("out") / "models"
DEFAULT_REQUEST_TIMEOUT = 30.0

# Documents holding `| Field | Type | Description |` tables. Certified_Devices.md
# is left out because it redefines models declared elsewhere.
DEFAULT_DOCUMENTS = (
    "resources/Guild.md",
    "resources/Voice.md",
    "resources/Emoji.md",
    "resources/Audit_Log.md",
    "resources/Invite.md",
    "resources/Guild_Scheduled_Event.md",
    "resources/User.md",
    "resources/Webhook.md",
    "resources/Sticker.md",
    "resources/Guild_Template.md",
    "resources/Stage_Instance.md",
    "resources/Application.md",
    "resources/Channel.md",
    "resources/Auto_Moderation.md",
    "interactions/Application_Commands.md",
    "interactions/Receiving_and_Responding.md",
    "interactions/Message_Components.md",
    "topics/Gateway.md",
    "topics/Gateway_Events.md",
    "topics/Rate_Limits.md",
    "topics/Teams.md",
    "topics/OAuth2.md",
    "topics/Permissions.md",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ModelGenConfig:
    """Represents the settings defined in .modelgen.yml."""

    root: Path
    docs_root: str = DEFAULT_DOCS_ROOT
    docs_site: str = DEFAULT_DOCS_SITE
    output_dir: Optional[Path] = None
    cache_dir: Optional[Path] = None
    package: str = DEFAULT_PACKAGE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    documents: List[str] = field(default_factory=lambda: list(DEFAULT_DOCUMENTS))
    types: Dict[str, str] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=dict)
    templates_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.output_dir is None:
            self.output_dir = self.root / DEFAULT_OUTPUT_DIR

    def document_refs(self) -> List[DocumentRef]:
        return [DocumentRef(path) for path in self.documents]


def load_config(config_path: Path) -> ModelGenConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ModelGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = ModelGenConfig(root=root)

    docs_root = _as_str(data.get("docs_root"))
    if docs_root:
        config.docs_root = docs_root if is_url(docs_root) else str(_resolve_path(root, docs_root))

    if "docs_site" in data:
        config.docs_site = _as_str(data.get("docs_site")) or ""

    output_dir = _as_str(data.get("output_dir"))
    if output_dir:
        config.output_dir = _resolve_path(root, output_dir)

    cache_dir = _as_str(data.get("cache_dir"))
    if cache_dir:
        config.cache_dir = _resolve_path(root, cache_dir)

    templates_dir = _as_str(data.get("templates_dir"))
    if templates_dir:
        config.templates_dir = _resolve_path(root, templates_dir)

    package = _as_str(data.get("package"))
    if package:
        if not package.replace(".", "_").isidentifier():
            raise ConfigError(f"package must be a Python package name, got '{package}'")
        config.package = package

    timeout = _as_float(data.get("request_timeout"))
    if timeout is not None:
        config.request_timeout = timeout

    if "documents" in data:
        config.documents = _as_str_list(data.get("documents"))

    config.types = _primitive_mapping(data.get("types"), "types", values_are_primitives=False)
    config.aliases = _primitive_mapping(data.get("aliases"), "aliases", values_are_primitives=True)
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _resolve_path(root: Path, value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _primitive_mapping(value: Any, key: str, *, values_are_primitives: bool) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    result: Dict[str, str] = {}
    for raw_name, raw_target in value.items():
        name = str(raw_name).strip().lower()
        target = _as_str(raw_target)
        if not target:
            raise ConfigError(f"'{key}.{raw_name}' must be a string")
        primitive = target if values_are_primitives else name
        if primitive not in PRIMITIVES:
            raise ConfigError(
                f"'{key}.{raw_name}' refers to unknown primitive '{primitive}' "
                f"(expected one of: {', '.join(PRIMITIVES)})"
            )
        if not values_are_primitives:
            try:
                parse_type_override(target)
            except ValueError as exc:
                raise ConfigError(f"'{key}.{raw_name}': {exc}") from exc
        result[name] = target
    return result


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_DOCUMENTS",
    "ModelGenConfig",
    "load_config",
]
