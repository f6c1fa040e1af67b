"""
Field extractors - read renderable fields off a StateNode

Pure accessors used by the label formatters. Absent fields come back as an
empty list or None, never as an exception, and the node is never modified.

KEY FUNCTIONS:
- get_state_name(id)      - "machine.parent.child" -> "child"
- get_description(node)   - description with shorthand expansion and colon substitution
- get_entry_actions(node) - entry action ids minus internal xstate.* actions
- get_exit_actions(node)  - exit action ids minus internal xstate.* actions
- get_invokes(node)       - invoke descriptors, verbatim
- get_tags(node)          - tags, verbatim
- get_meta(node)          - meta mapping, verbatim
"""

from typing import Any, Dict, Iterable, List, Optional

from .graph import INTERNAL_PREFIX, InvokeDescriptor, StateNode

COLON = ":"
COLON_SUBSTITUTE = "∶"  # RATIO, looks like a colon but is not a Mermaid separator
SHORTHAND_PREFIXES = {"INV:": "Invariant:"}


def get_state_name(state_id: str) -> str:
    """Last dot-separated segment of a state identity."""
    return state_id.split(".")[-1]


def expand_shorthand(text: str) -> str:
    for prefix, expansion in SHORTHAND_PREFIXES.items():
        if text.startswith(prefix):
            return expansion + text[len(prefix):]
    return text


def make_text_safe(text: str, substitute: str = COLON_SUBSTITUTE) -> str:
    """Replace colons, which Mermaid reads as the name/label separator."""
    return str(text).replace(COLON, substitute)


def is_internal_action(action: str) -> bool:
    return action.startswith(INTERNAL_PREFIX)


def filter_actions(actions: Iterable[str]) -> List[str]:
    return [action for action in actions if not is_internal_action(action)]


def get_description(node: StateNode, substitute: str = COLON_SUBSTITUTE) -> Optional[str]:
    if not node.description:
        return None
    return make_text_safe(expand_shorthand(str(node.description)), substitute)


def get_entry_actions(node: StateNode) -> List[str]:
    return filter_actions(node.entry or [])


def get_exit_actions(node: StateNode) -> List[str]:
    return filter_actions(node.exit or [])


def get_invokes(node: StateNode) -> List[InvokeDescriptor]:
    return list(node.invoke or [])


def get_tags(node: StateNode) -> List[str]:
    return list(node.tags or [])


def get_meta(node: StateNode) -> Optional[Dict[str, Any]]:
    return node.meta or None
