"""Engine configuration: local cache root, releases-only mode, user repositories.

The configuration is an explicit object handed to each component; nothing in
the engine reads process-wide state after construction. ``load_config`` reads
the user's repository preferences from YAML and applies environment
overrides with highest precedence.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from depfetch.constants import Constants
from depfetch.errors import ConfigurationFailure
from depfetch.models import RepositoryDescriptor
from depfetch.registry.presets import get_preset_repositories

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class EngineConfig:
    """Everything needed to build a RepositorySystem."""
    local_repository: str = Constants.DEFAULT_LOCAL_REPO
    releases_only: bool = False
    repositories: List[RepositoryDescriptor] = field(default_factory=list)
    presets: List[RepositoryDescriptor] = field(default_factory=get_preset_repositories)

    def __post_init__(self) -> None:
        self.local_repository = os.path.abspath(os.path.expanduser(self.local_repository))


def _descriptor_from_mapping(entry: Dict[str, Any]) -> RepositoryDescriptor:
    if not isinstance(entry, dict):
        raise ConfigurationFailure(f"Repository entry must be a mapping, got {type(entry).__name__}")
    repo_id = str(entry.get("id") or "").strip()
    url = str(entry.get("url") or "").strip()
    if not repo_id or not url:
        raise ConfigurationFailure(f"Repository entry needs both 'id' and 'url': {entry!r}")
    return RepositoryDescriptor.create(
        id=repo_id,
        type=str(entry.get("type") or "default"),
        url=url,
        username=entry.get("username"),
        password=entry.get("password"),
    )


def _descriptor_to_mapping(descriptor: RepositoryDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": descriptor.id, "type": descriptor.type, "url": descriptor.url}
    if descriptor.credentials is not None:
        data["username"] = descriptor.credentials.username
        data["password"] = descriptor.credentials.password
    return data


def apply_env_overrides(config: EngineConfig) -> EngineConfig:
    """Apply DEPFETCH_* environment variables on top of ``config``."""
    local = os.environ.get(Constants.ENV_LOCAL_REPO)
    if local and local.strip():
        config.local_repository = os.path.abspath(os.path.expanduser(local.strip()))
    releases_only = os.environ.get(Constants.ENV_RELEASES_ONLY)
    if releases_only is not None and releases_only.strip():
        config.releases_only = releases_only.strip().lower() in _TRUTHY
    return config


def load_config(path: Optional[str] = None) -> EngineConfig:
    """Load configuration from a YAML file.

    A missing file yields defaults. A file that cannot be parsed, or has the
    wrong shape, raises ConfigurationFailure.
    """
    path = path or os.environ.get(Constants.ENV_CONFIG_FILE) or Constants.DEFAULT_CONFIG_FILE
    data: Dict[str, Any] = {}
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationFailure(f"Could not read configuration {path}", cause=exc) from exc
        if not isinstance(data, dict):
            raise ConfigurationFailure(f"Configuration {path} must be a mapping")
        logger.debug("Loaded configuration from %s", path)

    config = EngineConfig(
        local_repository=data.get("local_repository") or Constants.DEFAULT_LOCAL_REPO,
        releases_only=bool(data.get("releases_only", False)),
        repositories=[_descriptor_from_mapping(e) for e in data.get("repositories") or []],
    )
    return apply_env_overrides(config)


def save_config(config: EngineConfig, path: Optional[str] = None) -> str:
    """Write the user-editable part of ``config`` to YAML; returns the path."""
    path = path or os.environ.get(Constants.ENV_CONFIG_FILE) or Constants.DEFAULT_CONFIG_FILE
    data = {
        "local_repository": config.local_repository,
        "releases_only": config.releases_only,
        "repositories": [_descriptor_to_mapping(r) for r in config.repositories],
    }
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
    return path
