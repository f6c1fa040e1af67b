"""
Label formatting - state and transition labels for Mermaid stateDiagram-v2

A state label is one logical Mermaid label assembled from ordered sections
joined with the profile's line-break token:

    <b>name</b>                      header
    <sup>description</sup>
    (Invariant∶a) (category)         tags
    <i>key</i>∶ value                meta, one line per key
    <i>Entry actions</i> / [ϟ act]
    <i>Exit actions</i>  / [ϟ act]
    <i>Invoke</i> / [◉ src] / <sub>∟ ID∶ id</sub>

A transition label is the event (bold, or "<i>after</i> 5000ms" for delays),
an optional "IF guard" suffix and one "[ϟ action]" line per action.

PresentationProfile holds every presentation choice (delay units, header
style, glyphs, tokens). A single profile is passed in through MermaidOptions;
no formatter consults module-level state.
"""

import json
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Dict, List, Optional

from .extractors import (
    expand_shorthand,
    filter_actions,
    get_description,
    get_entry_actions,
    get_exit_actions,
    get_invokes,
    get_meta,
    get_tags,
    make_text_safe,
)
from .graph import INTERNAL_PREFIX, StateNode, TransitionEdge

DELAY_PATTERN = re.compile(re.escape(INTERNAL_PREFIX) + r"after\.(\d+)\.")


class DelayUnits(Enum):
    """How delayed transitions are labelled."""

    MILLISECONDS = "ms"      # after 5000ms
    CONVERTED = "converted"  # after 5s, after 2m


class HeaderStyle(Enum):
    """How the state name heading a label is emphasized."""

    BOLD = "bold"
    UPPERCASE = "uppercase"


@dataclass(frozen=True)
class PresentationProfile:
    """Every presentation choice the formatters make, in one value."""

    delay_units: DelayUnits = DelayUnits.MILLISECONDS
    header_style: HeaderStyle = HeaderStyle.BOLD
    line_break: str = "<br/>"
    action_glyph: str = "ϟ"
    actor_glyph: str = "◉"
    invoke_id_glyph: str = "∟"
    guard_marker: str = "IF"
    colon_substitute: str = "∶"
    ellipsis: str = "..."
    entry_header: str = "<i>Entry actions</i>"
    exit_header: str = "<i>Exit actions</i>"
    invoke_header: str = "<i>Invoke</i>"


DEFAULT_PROFILE = PresentationProfile()
CONVERTED_UNITS_PROFILE = PresentationProfile(delay_units=DelayUnits.CONVERTED)


def _snake_case(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _as_length(raw_key: Any, value: Any) -> int:
    """Accept an int or a numeric string; anything else is rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Diagram option '{raw_key}' must be an integer, got {value!r}")
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Diagram option '{raw_key}' must be an integer, got {value!r}") from None


@dataclass
class MermaidOptions:
    """
    Options shared by the flat and nested converters.

    Args:
        title: Rendered as a %% comment line; invisible in the final diagram.
        max_description_length: Truncate state labels and notes longer than
            this (0 = no limit). The cut counts markup characters too and can
            land inside a tag such as <b>, leaving it unclosed; Mermaid then
            renders the rest of that label in the open style. Transition
            labels are never truncated.
        profile: The PresentationProfile used for every label.

    Raises:
        ValueError: If max_description_length < 0.
    """

    title: Optional[str] = None
    max_description_length: int = 0
    include_guards: bool = True
    include_actions: bool = True
    include_entry_actions: bool = True
    include_exit_actions: bool = True
    include_invokes: bool = True
    include_tags: bool = True
    include_meta: bool = True
    profile: PresentationProfile = DEFAULT_PROFILE

    def __post_init__(self):
        if self.max_description_length < 0:
            raise ValueError(
                f"max_description_length must be >= 0, got {self.max_description_length}"
            )

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> "MermaidOptions":
        """
        Build options from a compact mapping, e.g. a YAML ``diagram:`` section.

        Keys may be snake_case or camelCase (``maxDescriptionLength``).
        ``profile`` takes "ms" or "converted", ``header`` takes "bold" or
        "uppercase".

        Raises:
            ValueError: On unknown keys, unknown profile/header values, a
                non-integer length or a non-boolean include flag.
        """
        config = dict(config or {})
        known = {f.name for f in fields(cls)} - {"profile"}
        kwargs = {}
        profile = DEFAULT_PROFILE

        for raw_key, value in config.items():
            key = _snake_case(str(raw_key))
            if key == "profile":
                try:
                    profile = replace(profile, delay_units=DelayUnits(value))
                except ValueError:
                    raise ValueError(f"Unknown profile '{value}' (expected 'ms' or 'converted')") from None
            elif key == "header":
                try:
                    profile = replace(profile, header_style=HeaderStyle(value))
                except ValueError:
                    raise ValueError(f"Unknown header style '{value}' (expected 'bold' or 'uppercase')") from None
            elif key == "max_description_length":
                kwargs[key] = _as_length(raw_key, value)
            elif key.startswith("include_") and key in known:
                if not isinstance(value, bool):
                    raise ValueError(f"Diagram option '{raw_key}' must be true or false, got {value!r}")
                kwargs[key] = value
            elif key == "title":
                kwargs[key] = None if value is None else str(value)
            else:
                raise ValueError(f"Unknown diagram option '{raw_key}'")

        return cls(profile=profile, **kwargs)


# ----------------------------------------------------------------------
# Event names
# ----------------------------------------------------------------------

def parse_delay(event: str) -> Optional[int]:
    """Millisecond count of a synthesized delay event, or None."""
    match = DELAY_PATTERN.match(event)
    if not match:
        return None
    return int(match.group(1))


def format_delay(ms: int, profile: PresentationProfile = DEFAULT_PROFILE) -> str:
    if profile.delay_units is DelayUnits.CONVERTED and ms > 0:
        if ms % 60000 == 0:
            return f"{ms // 60000}m"
        if ms % 1000 == 0:
            return f"{ms // 1000}s"
    return f"{ms}ms"


def format_event_name(event: str, profile: PresentationProfile = DEFAULT_PROFILE) -> str:
    """
    Human label for an event identifier.

    "xstate.after.5000.order.validating" -> "after 5000ms" (or "after 5s"
    under CONVERTED_UNITS_PROFILE). Anything else is returned unchanged.
    """
    ms = parse_delay(event)
    if ms is None:
        return event
    return f"after {format_delay(ms, profile)}"


# ----------------------------------------------------------------------
# Labels
# ----------------------------------------------------------------------

def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    if max_length > 0 and len(text) > max_length:
        return text[:max_length] + ellipsis
    return text


def format_header(name: str, profile: PresentationProfile = DEFAULT_PROFILE) -> str:
    if profile.header_style is HeaderStyle.UPPERCASE:
        return name.upper()
    return f"<b>{name}</b>"


def format_meta_value(value: Any) -> str:
    """Lists join with ", ", mappings become compact JSON, scalars use str()."""
    if isinstance(value, (list, tuple)):
        return ", ".join(format_meta_value(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    if value is None or isinstance(value, bool):
        return json.dumps(value)
    return str(value)


def _action_lines(actions: List[str], profile: PresentationProfile) -> List[str]:
    sub = profile.colon_substitute
    return [f"[{profile.action_glyph} {make_text_safe(action, sub)}]" for action in actions]


def _state_sections(node: StateNode, options: MermaidOptions) -> List[str]:
    profile = options.profile
    sub = profile.colon_substitute
    sections = []

    description = get_description(node, sub)
    if description:
        sections.append(f"<sup>{description}</sup>")

    tags = get_tags(node)
    if tags and options.include_tags:
        sections.append(" ".join(f"({make_text_safe(expand_shorthand(tag), sub)})" for tag in tags))

    meta = get_meta(node)
    if meta and options.include_meta:
        if isinstance(meta, dict):
            for key, value in meta.items():
                text = make_text_safe(format_meta_value(value), sub)
                sections.append(f"<i>{make_text_safe(key, sub)}</i>{sub} {text}")
        else:
            sections.append(make_text_safe(format_meta_value(meta), sub))

    entry = get_entry_actions(node)
    if entry and options.include_entry_actions:
        sections.append(profile.entry_header)
        sections.extend(_action_lines(entry, profile))

    exit_actions = get_exit_actions(node)
    if exit_actions and options.include_exit_actions:
        sections.append(profile.exit_header)
        sections.extend(_action_lines(exit_actions, profile))

    invokes = get_invokes(node)
    if invokes and options.include_invokes:
        sections.append(profile.invoke_header)
        for invoke in invokes:
            sections.append(f"[{profile.actor_glyph} {make_text_safe(invoke.src, sub)}]")
            sections.append(f"<sub>{profile.invoke_id_glyph} ID{sub} {make_text_safe(invoke.id, sub)}</sub>")

    return sections


def format_state_label(node: StateNode, name: str, options: Optional[MermaidOptions] = None) -> str:
    """
    Full label for one state.

    Returns the bare name when the state has nothing else to show, so the
    diagram line reads "name: name".
    """
    options = options or MermaidOptions()
    profile = options.profile
    sections = _state_sections(node, options)
    if not sections:
        text = name
    else:
        text = profile.line_break.join([format_header(name, profile)] + sections)
    return truncate(text, options.max_description_length, profile.ellipsis)


def format_note(node: StateNode, options: Optional[MermaidOptions] = None) -> Optional[str]:
    """Side note text for a compound state's description, or None."""
    options = options or MermaidOptions()
    description = get_description(node, options.profile.colon_substitute)
    if not description:
        return None
    return truncate(description, options.max_description_length, options.profile.ellipsis)


def format_transition_label(edge: TransitionEdge, options: Optional[MermaidOptions] = None) -> str:
    """Label for one transition edge; may be empty for an eventless edge."""
    options = options or MermaidOptions()
    profile = options.profile
    sub = profile.colon_substitute

    ms = parse_delay(edge.event)
    if ms is not None:
        label = f"<i>after</i> {format_delay(ms, profile)}"
    elif edge.event:
        label = f"<b>{make_text_safe(edge.event, sub)}</b>"
    else:
        label = ""

    if edge.guard and options.include_guards:
        guard = f"{profile.guard_marker} {make_text_safe(edge.guard, sub)}"
        label = f"{label} {guard}" if label else guard

    actions = filter_actions(edge.actions)
    if actions and options.include_actions:
        lines = _action_lines(actions, profile)
        label = profile.line_break.join(([label] if label else []) + lines)

    return label
