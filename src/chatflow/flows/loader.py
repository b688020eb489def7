"""Bulk loading of flow definitions at process start."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ..exceptions import FlowDefinitionError
from ..models import Settings, get_settings
from .defaults import DEFAULT_FLOWS
from .registry import FlowRegistry

logger = logging.getLogger(__name__)


def parse_flow_definitions(document: Any) -> dict[str, dict[str, Any]]:
    """Normalize a loaded document into ``{name: definition}``.

    Accepts either a mapping of names to definitions (optionally nested
    under a top-level ``flows`` key) or a list of definitions that each
    carry a ``name``.
    """
    if isinstance(document, dict) and "flows" in document:
        document = document["flows"]

    if isinstance(document, dict):
        return {str(name): dict(definition or {}) for name, definition in document.items()}

    if isinstance(document, list):
        definitions = {}
        for index, definition in enumerate(document):
            if not isinstance(definition, dict) or "name" not in definition:
                raise FlowDefinitionError(f"Flow definition #{index} has no name")
            definitions[definition["name"]] = definition
        return definitions

    raise FlowDefinitionError("Flow document must be a mapping or a list of flows")


def register_flows(registry: FlowRegistry, definitions: dict[str, dict[str, Any]]) -> list[str]:
    """Register every definition, failing on the first invalid one."""
    for name, definition in definitions.items():
        try:
            registry.register_flow(name, definition)
        except ValidationError as e:
            raise FlowDefinitionError(f"Invalid definition for flow '{name}': {e}") from e
    return list(definitions)


def load_flows_from_yaml(registry: FlowRegistry, path: str | Path) -> list[str]:
    """Register the flows defined in a YAML file.

    Returns:
        Names of the registered flows.

    Raises:
        FlowDefinitionError: If the file cannot be read or a flow is invalid.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise FlowDefinitionError(f"Cannot read flow file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise FlowDefinitionError(f"Cannot parse flow file {path}: {e}") from e

    names = register_flows(registry, parse_flow_definitions(document))
    logger.info(f"Loaded {len(names)} flows from {path}")
    return names


def register_default_flows(registry: FlowRegistry) -> list[str]:
    """Register the built-in customer-service flows."""
    return register_flows(registry, DEFAULT_FLOWS)


def build_registry(settings: Settings | None = None) -> FlowRegistry:
    """Create a registry populated from ``settings.flows_path`` or the built-ins."""
    settings = settings or get_settings()
    registry = FlowRegistry()

    if settings.flows_path:
        load_flows_from_yaml(registry, settings.flows_path)
    else:
        register_default_flows(registry)

    return registry
