"""Statechart Mermaid - XState-style statecharts to Mermaid stateDiagram-v2"""

__version__ = "1.0.0"

from .core.formatting import (
    CONVERTED_UNITS_PROFILE,
    DEFAULT_PROFILE,
    DelayUnits,
    HeaderStyle,
    MermaidOptions,
    PresentationProfile,
    format_event_name,
    format_state_label,
    format_transition_label,
)
from .core.extractors import (
    get_description,
    get_entry_actions,
    get_exit_actions,
    get_invokes,
    get_meta,
    get_state_name,
    get_tags,
)
from .core.graph import (
    DirectedGraph,
    InvokeDescriptor,
    MachineDefinitionError,
    StateNode,
    TransitionEdge,
    to_directed_graph,
)
from .tools.diagrams import flatten, nest, to_mermaid, to_mermaid_nested

__all__ = [
    "to_mermaid",
    "to_mermaid_nested",
    "flatten",
    "nest",
    "MermaidOptions",
    "PresentationProfile",
    "DelayUnits",
    "HeaderStyle",
    "DEFAULT_PROFILE",
    "CONVERTED_UNITS_PROFILE",
    "format_event_name",
    "format_state_label",
    "format_transition_label",
    "get_state_name",
    "get_description",
    "get_entry_actions",
    "get_exit_actions",
    "get_invokes",
    "get_tags",
    "get_meta",
    "to_directed_graph",
    "DirectedGraph",
    "StateNode",
    "TransitionEdge",
    "InvokeDescriptor",
    "MachineDefinitionError",
]
