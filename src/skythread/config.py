"""Configuration loading for skythread

Settings come from ``.skythread.yaml`` (current directory first, then the
home directory) and are overridden by environment variables, with a local
``.env`` file loaded first.

Example .skythread.yaml:

    service: https://bsky.social
    actor_did: did:plc:abc123
    log_level: INFO
    thread_depth: 6
    label_groups:
      - id: spam
        labels: [spam, scam]
        configurable: true
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .label_groups import LABELS, LabelDefinition, LabelGroupDefinition, LabelGroupRegistry
from .xrpc_client import DEFAULT_SERVICE

logger = logging.getLogger(__name__)

load_dotenv()

CONFIG_FILENAME = ".skythread.yaml"


class LabelGroupOverride(BaseModel):
    """Label group entry from the config file"""

    id: str
    labels: List[str] = Field(default_factory=list)
    configurable: bool = True

    def to_definition(self) -> LabelGroupDefinition:
        return LabelGroupDefinition(
            id=self.id,
            configurable=self.configurable,
            labels=[LABELS.get(label_id) or LabelDefinition(id=label_id) for label_id in self.labels],
        )


class SkythreadConfig(BaseModel):
    service: str = DEFAULT_SERVICE
    access_token: Optional[str] = None
    actor_did: Optional[str] = None
    log_level: str = "INFO"
    thread_depth: Optional[int] = None
    label_groups: List[LabelGroupOverride] = Field(default_factory=list)

    def label_registry(self) -> LabelGroupRegistry:
        """Built-in label groups with this config's overrides applied"""
        registry = LabelGroupRegistry()
        if not self.label_groups:
            return registry
        return registry.with_overrides(g.to_definition() for g in self.label_groups)


def default_config_paths() -> List[Path]:
    return [
        Path(CONFIG_FILENAME),
        Path.home() / CONFIG_FILENAME,
    ]


def load_config(config_paths: Optional[Sequence[Path]] = None) -> SkythreadConfig:
    """Load settings from the first readable config file plus the environment

    Environment overrides: SKYTHREAD_SERVICE, SKYTHREAD_ACCESS_TOKEN,
    SKYTHREAD_ACTOR_DID, SKYTHREAD_LOG_LEVEL.
    """
    data = {}
    for config_path in config_paths if config_paths is not None else default_config_paths():
        if not config_path.exists():
            continue
        try:
            with open(config_path) as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load {config_path}: {e}")
            continue
        if isinstance(loaded, dict):
            logger.debug(f"Loaded config from {config_path}")
            data = loaded
            break

    env_overrides = {
        "service": os.environ.get("SKYTHREAD_SERVICE"),
        "access_token": os.environ.get("SKYTHREAD_ACCESS_TOKEN"),
        "actor_did": os.environ.get("SKYTHREAD_ACTOR_DID"),
        "log_level": os.environ.get("SKYTHREAD_LOG_LEVEL"),
    }
    data.update({k: v for k, v in env_overrides.items() if v})
    return SkythreadConfig.model_validate(data)
