"""
Directed graph model - state hierarchy plus transition edges

Turns an XState-shaped machine definition (a plain mapping, usually loaded from
YAML) into a tree of StateNode objects. Every node carries its direct children
and the transition edges scoped to it. The diagram walkers only ever read this
structure; nothing here is mutated after to_directed_graph() returns.

MACHINE DEFINITION:
    id: order
    initial: idle
    states:
      idle:
        description: Waiting for order submission
        on:
          SUBMIT: {target: validating, guard: stockAvailable, actions: [reserveStock]}
      validating:
        entry: [notifyUser]
        after:
          5000: processing

TARGET RESOLUTION:
  "#id" / "#machine.a.b" - absolute (custom id or dotted path)
  ".child"              - child of the source state
  "sibling"             - sibling of the source state

EDGE SCOPING:
  An edge belongs to the deepest node that is a strict ancestor of both its
  source and its target. Edges whose scope is the machine root land in
  DirectedGraph.edges. Each edge therefore lives in exactly one scope.

SYNTHESIZED EVENTS:
  after:  xstate.after.<delay>.<source id>
  onDone: xstate.done.state.<source id>
  always: "" (eventless)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

INTERNAL_PREFIX = "xstate."
DEFAULT_MACHINE_ID = "machine"

# Keys read while building the graph
STATE_KEYS = frozenset({
    'id', 'initial', 'states', 'type', 'description', 'tags', 'meta',
    'entry', 'exit', 'invoke', 'on', 'after', 'always', 'onDone',
})
# Valid XState keys that have no diagram rendering
IGNORED_KEYS = frozenset({
    'context', 'history', 'target', 'data', 'output', 'version', 'schema',
    'types', 'tsTypes', 'predictableActionArguments', 'preserveActionOrder',
})


class MachineDefinitionError(ValueError):
    """Raised when a machine definition cannot be turned into a graph."""


@dataclass(frozen=True)
class InvokeDescriptor:
    """An actor started while a state is active."""

    src: str
    id: str


@dataclass(eq=False)
class StateNode:
    """
    One node of the state hierarchy.

    Args:
        id: Dot-qualified identity path, e.g. "order.processing.charging".
        key: The state's key inside its parent's ``states`` mapping.
        children: Direct child nodes in declaration order.
        edges: Transition edges scoped to this node.
    """

    id: str
    key: str
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None
    entry: List[str] = field(default_factory=list)
    exit: List[str] = field(default_factory=list)
    invoke: List[InvokeDescriptor] = field(default_factory=list)
    initial: Optional[str] = None
    type: str = "atomic"
    parent: Optional["StateNode"] = field(default=None, repr=False, compare=False)
    children: List["StateNode"] = field(default_factory=list, repr=False)
    edges: List["TransitionEdge"] = field(default_factory=list, repr=False)

    @property
    def is_compound(self) -> bool:
        return bool(self.children)

    def ancestors(self) -> List["StateNode"]:
        """Strict ancestors, nearest first."""
        result = []
        node = self.parent
        while node is not None:
            result.append(node)
            node = node.parent
        return result


@dataclass(eq=False)
class TransitionEdge:
    """A directed, event-labelled relation between two state nodes."""

    source: StateNode
    target: StateNode
    event: str
    guard: Optional[str] = None
    actions: List[str] = field(default_factory=list)

    @property
    def key(self):
        """Identity of the edge: (source id, target id, event)."""
        return (self.source.id, self.target.id, self.event)


@dataclass(eq=False)
class DirectedGraph:
    """Root of a built graph: top-level children plus root-scoped edges."""

    id: str
    root: StateNode
    initial: Optional[str] = None
    children: List[StateNode] = field(default_factory=list)
    edges: List[TransitionEdge] = field(default_factory=list)

    def iter_nodes(self):
        """Yield every state node below the root, depth-first pre-order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_edges(self):
        """Yield every edge once: root edges first, then per node in pre-order."""
        yield from self.edges
        for node in self.iter_nodes():
            yield from node.edges


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _named(value: Any, what: str, node_id: str) -> str:
    """Normalize an action/guard reference given as a string or {type: name}."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get('type'), str):
        return value['type']
    raise MachineDefinitionError(f"Invalid {what} {value!r} in state '{node_id}'")


def _invoke_descriptors(config: Any, node_id: str) -> List[InvokeDescriptor]:
    descriptors = []
    for index, item in enumerate(_as_list(config)):
        if isinstance(item, str):
            src, invoke_id = item, None
        elif isinstance(item, dict) and 'src' in item:
            src = item['src'] if isinstance(item['src'], str) else _named(item['src'], 'invoke src', node_id)
            invoke_id = item.get('id')
        else:
            raise MachineDefinitionError(f"Invalid invoke {item!r} in state '{node_id}'")
        if invoke_id is None:
            invoke_id = f"{node_id}:invocation[{index}]"
        descriptors.append(InvokeDescriptor(src=src, id=str(invoke_id)))
    return descriptors


def _build_node(key: str, config: Optional[Dict[str, Any]], parent: Optional[StateNode],
                nodes: Dict[str, StateNode], custom_ids: Dict[str, StateNode],
                configs: Dict[str, Dict[str, Any]]) -> StateNode:
    config = config or {}
    if not isinstance(config, dict):
        raise MachineDefinitionError(f"State '{key}' must be a mapping, got {type(config).__name__}")

    node_id = f"{parent.id}.{key}" if parent else key
    for unknown in [k for k in config if k not in STATE_KEYS and k not in IGNORED_KEYS]:
        logger.warning(f"Ignoring unknown key {unknown!r} in state '{node_id}'")
    tags = config.get('tags')
    node = StateNode(
        id=node_id,
        key=key,
        description=config.get('description'),
        tags=[str(tag) for tag in _as_list(tags)],
        meta=config.get('meta'),
        entry=[_named(a, 'entry action', node_id) for a in _as_list(config.get('entry'))],
        exit=[_named(a, 'exit action', node_id) for a in _as_list(config.get('exit'))],
        invoke=_invoke_descriptors(config.get('invoke'), node_id),
        initial=config.get('initial'),
        type=config.get('type', 'atomic'),
        parent=parent,
    )
    nodes[node_id] = node
    configs[node_id] = config
    if 'id' in config and parent is not None:
        custom_ids[str(config['id'])] = node

    states = config.get('states') or {}
    if not isinstance(states, dict):
        raise MachineDefinitionError(f"'states' of '{node_id}' must be a mapping")
    for child_key, child_config in states.items():
        node.children.append(_build_node(str(child_key), child_config, node, nodes, custom_ids, configs))

    if node.children and node.type == 'atomic':
        node.type = 'compound'
    if node.initial is not None and node.initial not in states:
        raise MachineDefinitionError(f"Initial state '{node.initial}' not found in '{node_id}'")
    return node


def _resolve_target(target: str, source: StateNode, root: StateNode,
                    nodes: Dict[str, StateNode], custom_ids: Dict[str, StateNode]) -> StateNode:
    if target.startswith('#'):
        ref = target[1:]
        head, _, rest = ref.partition('.')
        if head in custom_ids:
            base = custom_ids[head]
            path = f"{base.id}.{rest}" if rest else base.id
        else:
            path = ref
        if path in nodes:
            return nodes[path]
    elif target.startswith('.'):
        path = f"{source.id}{target}"
        if path in nodes:
            return nodes[path]
    else:
        scope = source.parent or root
        path = f"{scope.id}.{target}"
        if path in nodes:
            return nodes[path]
    raise MachineDefinitionError(f"Cannot resolve target '{target}' from state '{source.id}'")


def _scope_of(source: StateNode, target: StateNode, root: StateNode) -> StateNode:
    """Deepest node that is a strict ancestor of both endpoints."""
    target_ancestors = {node.id for node in target.ancestors()}
    for node in source.ancestors():
        if node.id in target_ancestors:
            return node
    return root


def _transition_specs(spec: Any, node_id: str) -> List[Dict[str, Any]]:
    specs = []
    for item in _as_list(spec):
        if isinstance(item, str):
            specs.append({'target': item})
        elif isinstance(item, dict):
            specs.append(item)
        else:
            raise MachineDefinitionError(f"Invalid transition {item!r} in state '{node_id}'")
    return specs


def _collect_edges(source: StateNode, config: Dict[str, Any], root: StateNode,
                   nodes: Dict[str, StateNode], custom_ids: Dict[str, StateNode]) -> List[TransitionEdge]:
    triggers = []
    for event, spec in (config.get('on') or {}).items():
        triggers.append((str(event), spec))
    for delay, spec in (config.get('after') or {}).items():
        triggers.append((f"{INTERNAL_PREFIX}after.{delay}.{source.id}", spec))
    if 'always' in config:
        triggers.append(("", config['always']))
    if 'onDone' in config:
        triggers.append((f"{INTERNAL_PREFIX}done.state.{source.id}", config['onDone']))

    edges = []
    for event, spec in triggers:
        for transition in _transition_specs(spec, source.id):
            guard = transition.get('guard')
            if guard is None:
                guard = transition.get('cond')
            guard_name = _named(guard, 'guard', source.id) if guard is not None else None
            actions = [_named(a, 'action', source.id) for a in _as_list(transition.get('actions'))]
            targets = _as_list(transition.get('target'))
            if not targets:
                targets = [None]
            for target in targets:
                target_node = source if target is None else _resolve_target(
                    str(target), source, root, nodes, custom_ids)
                edges.append(TransitionEdge(
                    source=source,
                    target=target_node,
                    event=event,
                    guard=guard_name,
                    actions=list(actions),
                ))
    return edges


def to_directed_graph(machine: Dict[str, Any]) -> DirectedGraph:
    """
    Build a DirectedGraph from a machine definition mapping.

    Raises:
        MachineDefinitionError: On malformed states, transitions or targets.
    """
    if not isinstance(machine, dict):
        raise MachineDefinitionError(f"Machine definition must be a mapping, got {type(machine).__name__}")

    machine_id = str(machine.get('id') or DEFAULT_MACHINE_ID)
    nodes: Dict[str, StateNode] = {}
    custom_ids: Dict[str, StateNode] = {}
    configs: Dict[str, Dict[str, Any]] = {}
    root = _build_node(machine_id, machine, None, nodes, custom_ids, configs)
    custom_ids.setdefault(machine_id, root)

    graph = DirectedGraph(id=machine_id, root=root, initial=root.initial, children=root.children)

    for node_id, node in nodes.items():
        for edge in _collect_edges(node, configs[node_id], root, nodes, custom_ids):
            scope = _scope_of(edge.source, edge.target, root)
            if scope is root:
                graph.edges.append(edge)
            else:
                scope.edges.append(edge)

    logger.debug(
        f"Built graph '{machine_id}': {len(nodes) - 1} states, "
        f"{sum(1 for _ in graph.iter_edges())} edges"
    )
    return graph
