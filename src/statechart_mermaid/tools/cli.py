#!/usr/bin/env python3
"""Statechart Mermaid CLI

Converts a YAML/JSON machine definition into a Mermaid stateDiagram-v2.

ARGUMENTS:
    machine_file              YAML or JSON machine definition
    output_file               (Optional) Write here instead of stdout
    --nested                  Keep compound states as nested blocks
    --title                   Diagram title (%% comment line)
    --max-description-length  Truncate state labels (0 = no limit)
    --profile                 Delay labels: ms (after 5000ms) or converted (after 5s)
    --header                  State header style: bold or uppercase
    --no-guards/--no-actions/--no-entry/--no-exit/--no-invokes/--no-tags/--no-meta
                              Leave the corresponding field out of labels
    --markdown                Wrap the diagram in a ```mermaid fenced block
    --summary                 Print a states overview table instead of a diagram
    --debug                   Enable debug logging

Options from the file's "diagram:" section apply first; flags override them.

USAGE:
    statechart-mermaid examples/order-machine.yaml
    statechart-mermaid machine.yaml docs/machine.md --nested --markdown
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import yaml

from ..core.formatting import DelayUnits, HeaderStyle, MermaidOptions
from ..core.graph import MachineDefinitionError
from .config import load_machine
from .diagrams import generate_states_table, to_mermaid, to_mermaid_nested

logger = logging.getLogger(__name__)

FIELD_FLAGS = {
    'no_guards': 'include_guards',
    'no_actions': 'include_actions',
    'no_entry': 'include_entry_actions',
    'no_exit': 'include_exit_actions',
    'no_invokes': 'include_invokes',
    'no_tags': 'include_tags',
    'no_meta': 'include_meta',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate Mermaid state diagrams from statechart definitions')
    parser.add_argument('machine_file', help='Path to YAML or JSON machine definition')
    parser.add_argument('output_file', nargs='?', help='Output file (default: stdout)')
    parser.add_argument('--nested', action='store_true', help='Render compound states as nested blocks')
    parser.add_argument('--title', help='Diagram title (rendered as a comment)')
    parser.add_argument('--max-description-length', type=int, help='Truncate state labels (0 = no limit)')
    parser.add_argument('--profile', choices=[u.value for u in DelayUnits], help='Delay label units')
    parser.add_argument('--header', choices=[s.value for s in HeaderStyle], help='State header style')
    parser.add_argument('--no-guards', action='store_true', help='Omit transition guards')
    parser.add_argument('--no-actions', action='store_true', help='Omit transition actions')
    parser.add_argument('--no-entry', action='store_true', help='Omit entry actions')
    parser.add_argument('--no-exit', action='store_true', help='Omit exit actions')
    parser.add_argument('--no-invokes', action='store_true', help='Omit invoked actors')
    parser.add_argument('--no-tags', action='store_true', help='Omit tags')
    parser.add_argument('--no-meta', action='store_true', help='Omit metadata')
    parser.add_argument('--markdown', action='store_true', help='Wrap output in a ```mermaid block')
    parser.add_argument('--summary', action='store_true', help='Print a states overview table')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def apply_overrides(options: MermaidOptions, args: argparse.Namespace) -> MermaidOptions:
    """Layer command line flags over options read from the machine file."""
    changes = {}
    if args.title is not None:
        changes['title'] = args.title
    if args.max_description_length is not None:
        changes['max_description_length'] = args.max_description_length
    for flag, field_name in FIELD_FLAGS.items():
        if getattr(args, flag):
            changes[field_name] = False

    profile = options.profile
    if args.profile:
        profile = replace(profile, delay_units=DelayUnits(args.profile))
    if args.header:
        profile = replace(profile, header_style=HeaderStyle(args.header))

    return replace(options, profile=profile, **changes)


def render_markdown(diagram: str, heading: str) -> str:
    return '\n'.join([f"# {heading}", "", "```mermaid", diagram, "```", ""])


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.debug(f"Converting {args.machine_file} ({'nested' if args.nested else 'flat'} layout)")

    try:
        machine, options = load_machine(args.machine_file)
        options = apply_overrides(options, args)

        if args.summary:
            output = generate_states_table(machine)
        else:
            convert = to_mermaid_nested if args.nested else to_mermaid
            output = convert(machine, options)
            if args.markdown:
                heading = options.title or machine.get('id') or Path(args.machine_file).stem
                output = render_markdown(output, heading)
    except (FileNotFoundError, yaml.YAMLError, MachineDefinitionError, ValueError) as e:
        print(f"Error processing {args.machine_file}: {e}", file=sys.stderr)
        return 1

    if args.output_file:
        output_path = Path(args.output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output if output.endswith('\n') else output + '\n', encoding='utf-8')
        print(f"✅ Generated diagram: {output_path}")
    else:
        print(output)

    return 0


if __name__ == '__main__':
    sys.exit(main())
