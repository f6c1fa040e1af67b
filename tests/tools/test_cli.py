"""Tests for the statechart-mermaid command line tool."""

import pytest

from statechart_mermaid.tools.cli import main

MACHINE = """\
id: order
initial: idle
diagram:
  title: Orders
states:
  idle:
    on:
      SUBMIT:
        target: validating
        guard: stockAvailable
  validating:
    tags: [loading]
    after:
      5000: done
  done:
    initial: archived
    states:
      archived: {}
"""


@pytest.fixture
def machine_file(tmp_path):
    path = tmp_path / 'order.yaml'
    path.write_text(MACHINE, encoding='utf-8')
    return path


class TestCli:
    def test_flat_to_stdout(self, machine_file, capsys):
        assert main([str(machine_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith('stateDiagram-v2')
        assert '    %% Orders' in out
        assert 'idle --> validating: <b>SUBMIT</b> IF stockAvailable' in out
        assert 'state done {' not in out

    def test_nested(self, machine_file, capsys):
        assert main([str(machine_file), '--nested']) == 0
        out = capsys.readouterr().out
        assert '    state done {' in out
        assert '        [*] --> archived' in out

    def test_flags_override_file_options(self, machine_file, capsys):
        assert main([str(machine_file), '--title', 'Override', '--profile', 'converted',
                     '--no-guards', '--no-tags', '--header', 'uppercase']) == 0
        out = capsys.readouterr().out
        assert '    %% Override' in out
        assert '<i>after</i> 5s' in out
        assert 'IF stockAvailable' not in out
        assert '(loading)' not in out

    def test_max_description_length(self, machine_file, capsys):
        assert main([str(machine_file), '--max-description-length', '5']) == 0
        out = capsys.readouterr().out
        assert '    validating: <b>va...' in out.splitlines()

    def test_output_file_markdown(self, machine_file, tmp_path, capsys):
        output = tmp_path / 'docs' / 'order.md'
        assert main([str(machine_file), str(output), '--markdown']) == 0
        text = output.read_text(encoding='utf-8')
        assert text.startswith('# Orders\n\n```mermaid\nstateDiagram-v2')
        assert text.rstrip().endswith('```')
        assert 'Generated diagram' in capsys.readouterr().out

    def test_summary(self, machine_file, capsys):
        assert main([str(machine_file), '--summary']) == 0
        out = capsys.readouterr().out
        assert 'Transitions' in out
        assert 'validating' in out
        assert 'stateDiagram-v2' not in out

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / 'nope.yaml')]) == 1
        assert 'Error' in capsys.readouterr().err

    def test_bad_target(self, tmp_path, capsys):
        path = tmp_path / 'bad.yaml'
        path.write_text('id: m\nstates:\n  a:\n    on:\n      GO: nowhere\n')
        assert main([str(path)]) == 1
        assert 'nowhere' in capsys.readouterr().err

    def test_negative_length_rejected(self, machine_file, capsys):
        assert main([str(machine_file), '--max-description-length', '-1']) == 1
        assert 'max_description_length' in capsys.readouterr().err

    def test_numeric_string_option_in_file(self, tmp_path, capsys):
        path = tmp_path / 'quoted.yaml'
        path.write_text('id: m\ninitial: a\ndiagram:\n  maxDescriptionLength: "10"\nstates:\n  a: {}\n')
        assert main([str(path)]) == 0
        assert '    a: a' in capsys.readouterr().out.splitlines()

    def test_bad_option_type_in_file(self, tmp_path, capsys):
        path = tmp_path / 'bad-option.yaml'
        path.write_text('id: m\ndiagram:\n  maxDescriptionLength: ten\nstates:\n  a: {}\n')
        assert main([str(path)]) == 1
        assert 'maxDescriptionLength' in capsys.readouterr().err
