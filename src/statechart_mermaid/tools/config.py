"""Machine Definition Loader

Loads YAML (or JSON) machine definitions and splits off diagram options.

FUNCTIONS:
- load_yaml(file_path) -> Dict: Load a YAML/JSON mapping from disk (only
  true/false are booleans, so "on:" stays a string key)
- split_diagram_options(config) -> (machine, options): Separate the optional
  top-level "diagram:" section from the machine definition
- load_machine(file_path) -> (machine, MermaidOptions): Both of the above

FILE FORMAT:
    id: order
    initial: idle
    diagram:
      title: Order Processing
      maxDescriptionLength: 0
      profile: ms            # or "converted"
    states:
      idle:
        on:
          SUBMIT: validating

  JSON is a subset of YAML, so .json files go through the same loader.

USAGE:
    machine, options = load_machine('examples/order-machine.yaml')
    print(to_mermaid(machine, options))
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from ..core.formatting import MermaidOptions
from ..core.graph import MachineDefinitionError

logger = logging.getLogger(__name__)

DIAGRAM_SECTION = 'diagram'
BOOL_TAG = 'tag:yaml.org,2002:bool'


class MachineLoader(yaml.SafeLoader):
    """SafeLoader that only reads true/false as booleans.

    YAML 1.1 also resolves on/off/yes/no to booleans, which would turn the
    ``on:`` transition key and states named "off" into True/False.
    """


MachineLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
MachineLoader.add_implicit_resolver(
    BOOL_TAG,
    re.compile(r'^(?:true|True|TRUE|false|False|FALSE)$'),
    list('tTfF'),
)


def load_yaml(file_path: str) -> Dict[str, Any]:
    """
    Load a machine definition file.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        MachineDefinitionError: If the document is not a mapping.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Machine definition not found: {file_path}")

    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.load(f, Loader=MachineLoader)

    if not isinstance(config, dict):
        raise MachineDefinitionError(f"{file_path} must contain a mapping, got {type(config).__name__}")

    logger.debug(f"Loaded machine definition from {file_path}")
    return config


def split_diagram_options(config: Dict[str, Any]) -> Tuple[Dict[str, Any], MermaidOptions]:
    """Return the machine definition without its diagram section, plus the parsed options."""
    machine = {key: value for key, value in config.items() if key != DIAGRAM_SECTION}
    section = config.get(DIAGRAM_SECTION) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{DIAGRAM_SECTION}' section must be a mapping")
    return machine, MermaidOptions.from_dict(section)


def load_machine(file_path: str) -> Tuple[Dict[str, Any], MermaidOptions]:
    return split_diagram_options(load_yaml(file_path))
