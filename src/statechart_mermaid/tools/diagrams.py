#!/usr/bin/env python3
"""Statechart Diagram Generator - Core Logic

Generates Mermaid stateDiagram-v2 text from a machine definition (or an already
built DirectedGraph).

MAIN FUNCTIONS:
- to_mermaid()             - Flat diagram, every state at one level (alias: flatten)
- to_mermaid_nested()      - Compound states as nested blocks (alias: nest)
- build_short_names()      - Node identity -> diagram name, collision safe
- generate_states_table()  - States overview table for the CLI --summary view

FLAT LAYOUT:
    stateDiagram-v2
        %% Title
        [*] --> idle
        <root-scoped edges>
        idle: <label>
        <edges scoped to idle>
        <children of idle, depth-first>

NESTED LAYOUT:
    stateDiagram-v2
        [*] --> booting
        state booting {
            [*] --> mounting
            mounting: mounting
            starting: starting
            mounting --> starting: <b>MOUNT_OK</b>
        }
        note right of booting: <description>
        <root-scoped edges>

DEDUPLICATION:
  States and edges are tracked by full identity (node id, and
  (source id, target id, event) for edges) in per-call sets. Names are only
  projected at emission time, so both layouts share one dedup contract.

NAMES:
  A node is shown by the last segment of its id. When two nodes share that
  segment, both fall back to their path below the machine root with "."
  replaced by "_" (order.a.idle -> a_idle) and a warning is logged.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union

from tabulate import tabulate

from ..core.extractors import (
    get_entry_actions,
    get_exit_actions,
    get_invokes,
    get_state_name,
    get_tags,
)
from ..core.formatting import (
    MermaidOptions,
    format_note,
    format_state_label,
    format_transition_label,
)
from ..core.graph import DirectedGraph, StateNode, TransitionEdge, to_directed_graph

logger = logging.getLogger(__name__)

INDENT = "    "

MachineLike = Union[Dict[str, Any], DirectedGraph]
OptionsLike = Union[MermaidOptions, Dict[str, Any], None]


def _resolve_graph(machine: MachineLike) -> DirectedGraph:
    if isinstance(machine, DirectedGraph):
        return machine
    return to_directed_graph(machine)


def _resolve_options(options: OptionsLike) -> MermaidOptions:
    if options is None:
        return MermaidOptions()
    if isinstance(options, MermaidOptions):
        return options
    return MermaidOptions.from_dict(options)


def build_short_names(graph: DirectedGraph) -> Dict[str, str]:
    """Map every node id (root included) to the name shown in the diagram."""
    names = {graph.root.id: get_state_name(graph.root.id)}
    by_name = defaultdict(list)
    for node in graph.iter_nodes():
        by_name[get_state_name(node.id)].append(node.id)

    root_prefix = f"{graph.root.id}."
    taken = {name for name, ids in by_name.items() if len(ids) == 1}
    for name, ids in by_name.items():
        if len(ids) == 1:
            names[ids[0]] = name
            continue
        logger.warning(f"State name '{name}' is shared by {', '.join(ids)}; using qualified names")
        for node_id in ids:
            relative = node_id[len(root_prefix):] if node_id.startswith(root_prefix) else node_id
            candidate = relative.replace(".", "_")
            if candidate in taken:
                candidate = node_id.replace(".", "_")
            base, suffix = candidate, 2
            while candidate in taken:
                candidate = f"{base}_{suffix}"
                suffix += 1
            if candidate != relative.replace(".", "_"):
                logger.warning(f"Qualified name for '{node_id}' is already in use; using '{candidate}'")
            taken.add(candidate)
            names[node_id] = candidate
    return names


def _name(names: Dict[str, str], node: StateNode) -> str:
    return names.get(node.id) or get_state_name(node.id)


def _initial_name(names: Dict[str, str], children: List[StateNode], initial: Optional[str]) -> Optional[str]:
    if not initial or not isinstance(initial, str):
        return None
    for child in children:
        if child.key == initial:
            return _name(names, child)
    return initial


def _title_lines(title: Optional[str]) -> List[str]:
    if not title:
        return []
    return [f"{INDENT}%% {line}" for line in str(title).splitlines()]


def _edge_line(edge: TransitionEdge, names: Dict[str, str], options: MermaidOptions, pad: str) -> str:
    source = _name(names, edge.source)
    target = _name(names, edge.target)
    label = format_transition_label(edge, options)
    if label:
        return f"{pad}{source} --> {target}: {label}"
    return f"{pad}{source} --> {target}"


def to_mermaid(machine: MachineLike, options: OptionsLike = None) -> str:
    """
    Convert a machine to a flat Mermaid stateDiagram-v2.

    Every state is emitted once at the top level, every transition once,
    in traversal order: root edges, then a depth-first walk where each
    state's label is followed by its own scoped edges.
    """
    options = _resolve_options(options)
    graph = _resolve_graph(machine)
    names = build_short_names(graph)
    lines = ["stateDiagram-v2"]
    seen_states = set()
    seen_edges = set()

    lines.extend(_title_lines(options.title))

    initial = _initial_name(names, graph.children, graph.initial)
    if initial:
        lines.append(f"{INDENT}[*] --> {initial}")

    def emit_edge(edge: TransitionEdge) -> None:
        if edge.key in seen_edges:
            logger.debug(f"Skipping duplicate edge {edge.key}")
            return
        seen_edges.add(edge.key)
        lines.append(_edge_line(edge, names, options, INDENT))

    def collect_all(node: StateNode) -> None:
        if node.id not in seen_states:
            seen_states.add(node.id)
            name = _name(names, node)
            lines.append(f"{INDENT}{name}: {format_state_label(node, name, options)}")
        for edge in node.edges:
            emit_edge(edge)
        for child in node.children:
            collect_all(child)

    for edge in graph.edges:
        emit_edge(edge)

    for child in graph.children:
        collect_all(child)

    logger.debug(f"Flat diagram for '{graph.id}': {len(seen_states)} states, {len(seen_edges)} edges")
    return "\n".join(lines)


def to_mermaid_nested(machine: MachineLike, options: OptionsLike = None) -> str:
    """
    Convert a machine to a Mermaid stateDiagram-v2 with nested compound states.

    Compound states become ``state name { ... }`` blocks holding their own
    initial marker, children and scoped edges; a description is attached as
    a ``note right of`` line. Leaf states render exactly as in to_mermaid().
    A machine without compound states yields the same state and transition
    lines as the flat layout.
    """
    options = _resolve_options(options)
    graph = _resolve_graph(machine)
    names = build_short_names(graph)
    lines = ["stateDiagram-v2"]
    processed_edges = set()

    lines.extend(_title_lines(options.title))

    def emit_edge(edge: TransitionEdge, indent: int) -> None:
        if edge.key in processed_edges:
            logger.debug(f"Skipping duplicate edge {edge.key}")
            return
        processed_edges.add(edge.key)
        lines.append(_edge_line(edge, names, options, INDENT * indent))

    def process_node(node: StateNode, indent: int = 1) -> None:
        pad = INDENT * indent
        name = _name(names, node)

        if node.children:
            lines.append(f"{pad}state {name} {{")

            initial = _initial_name(names, node.children, node.initial)
            if initial:
                lines.append(f"{pad}{INDENT}[*] --> {initial}")

            for child in node.children:
                process_node(child, indent + 1)

            for edge in node.edges:
                emit_edge(edge, indent + 1)

            lines.append(f"{pad}}}")

            note = format_note(node, options)
            if note:
                lines.append(f"{pad}note right of {name}: {note}")
        else:
            lines.append(f"{pad}{name}: {format_state_label(node, name, options)}")
            for edge in node.edges:
                emit_edge(edge, indent)

    initial = _initial_name(names, graph.children, graph.initial)
    if initial:
        lines.append(f"{INDENT}[*] --> {initial}")

    for child in graph.children:
        process_node(child, 1)

    for edge in graph.edges:
        emit_edge(edge, 1)

    logger.debug(f"Nested diagram for '{graph.id}': {len(processed_edges)} edges")
    return "\n".join(lines)


flatten = to_mermaid
nest = to_mermaid_nested


def generate_states_table(machine: MachineLike) -> str:
    """Grid table of states with their tags, actions, invokes and transitions."""
    graph = _resolve_graph(machine)
    names = build_short_names(graph)

    outgoing = defaultdict(int)
    for edge in graph.iter_edges():
        outgoing[edge.source.id] += 1

    headers = ['State', 'Kind', 'Tags', 'Entry', 'Exit', 'Invokes', 'Transitions']
    rows = []
    for node in graph.iter_nodes():
        rows.append([
            _name(names, node),
            'compound' if node.is_compound and node.type == 'atomic' else node.type,
            ', '.join(get_tags(node)),
            ', '.join(get_entry_actions(node)),
            ', '.join(get_exit_actions(node)),
            ', '.join(invoke.src for invoke in get_invokes(node)),
            outgoing[node.id],
        ])
    return tabulate(rows, headers=headers, tablefmt='grid')
