"""
Run Configuration for fsalang
Immutable options passed explicitly into the interpreter, optionally loaded
from a YAML file and overridden by CLI flags.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator

from .errors import ValidationError
from .logging_config import get_logger

log = get_logger(__name__)

DEFAULT_MAX_STEPS = 10_000


class RunOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore_lang_check: bool = Field(default=False, description="Skip alphabet membership checks")
    max_steps: int = Field(default=DEFAULT_MAX_STEPS, gt=0, description="Step procedure budget per run")
    auto_null: bool = Field(default=False, description="Missing DFA transitions go to the null state")
    term_on_accept: bool = Field(default=False, description="Stop a branch as soon as it reaches an accept state")
    quiet: bool = False
    extra_quiet: bool = Field(default=False, description="Also silence $log output")
    seed: Optional[int] = Field(default=None, description="Seed for weighted choice")

    @model_validator(mode="before")
    @classmethod
    def extra_quiet_implies_quiet(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("extra_quiet"):
            data = {**data, "quiet": True}
        return data

    def merged(self, **overrides: Any) -> "RunOptions":
        """New options with the non-None overrides applied."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return RunOptions(**data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid run options: {e}") from e


def find_config() -> Optional[Path]:
    """Look for a config file in the usual places, first hit wins."""
    possible_paths = [
        Path(os.getcwd()) / "fsalang.yaml",
        Path.home() / ".config" / "fsalang" / "config.yaml",
    ]
    for path in possible_paths:
        if path.exists():
            return path
    return None


def load_options(config_path: Optional[Union[str, Path]] = None) -> RunOptions:
    """
    Load RunOptions from a YAML mapping. With no path, searches the default
    locations and falls back to defaults when nothing is found.
    """
    path = Path(config_path) if config_path is not None else find_config()
    if path is None:
        return RunOptions()
    if not path.exists():
        raise FileNotFoundError(f"Config file \"{path}\" not found")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")

    try:
        options = RunOptions(**_normalize_keys(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid config in {path}: {e}") from e

    log.info("config_loaded", path=str(path))
    return options


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    # allow "max-steps" as well as "max_steps"
    return {str(k).replace("-", "_"): v for k, v in data.items()}
