"""Generator configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from cloudnode.options import DEFAULT_BASE_URL


class GeneratorConfig(BaseModel):
    """Settings for the generated client module."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = "Cloudnode"  # name of the main client class
    base_url: str = Field(DEFAULT_BASE_URL, alias="baseUrl")
    instance_name: str = Field("cloudnode", alias="instanceName")


def load_config(file_path: Path | None) -> GeneratorConfig:
    """Read a JSON/YAML config file. Without a file, all defaults apply."""
    if file_path is None:
        return GeneratorConfig()
    data = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    return GeneratorConfig.model_validate(data)
