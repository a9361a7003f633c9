"""
Load workflow definitions from YAML or JSON files.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from ..models import Workflow

logger = logging.getLogger(__name__)


def load_workflow_data(data: Dict[str, Any], name: str | None = None) -> Workflow:
    """
    Build a Workflow from a parsed definition.

    Expected format:
    ```yaml
    name: greet
    nodes:
      - id: name
        type: input
        config: {defaultValue: World}
      - id: greeting
        type: transform
        config: {type: template, template: "Hello {{input}}"}
    edges:
      - source: name
        target: greeting
    ```

    A definition wrapped in a top-level ``workflow`` key is also accepted.
    """
    if isinstance(data.get("workflow"), dict):
        data = data["workflow"]
    if name and not data.get("name"):
        data = {**data, "name": name}
    return Workflow.model_validate(data)


def load_workflow(path: str | Path) -> Workflow:
    """
    Load a workflow from a YAML or JSON file (JSON is parsed as YAML).

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid YAML or does not hold a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workflow file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid workflow file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Workflow file must contain a mapping: {path}")

    workflow = load_workflow_data(data, name=path.stem)
    logger.debug(f"Loaded workflow '{workflow.name}' ({len(workflow.nodes)} nodes) from {path}")
    return workflow
