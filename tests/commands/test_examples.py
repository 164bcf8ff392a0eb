"""Tests for the --examples flag on every command."""

import pytest
from click.testing import CliRunner

from nodesite.cli import cli


@pytest.mark.parametrize(
    ("command", "expected"),
    [
        ("build", "nodesite build --skip-source"),
        ("source", "nodesite source"),
        ("ingest", "nodesite ingest"),
        ("redirects", "nodesite redirects --locale fr"),
        ("slug", "nodesite slug content/blog/"),
    ],
)
def test_examples(cli_runner: CliRunner, command: str, expected: str) -> None:
    result = cli_runner.invoke(cli, [command, "--examples"])
    assert result.exit_code == 0
    assert "Examples for" in result.output
    assert expected in result.output


def test_slug_examples_skip_path_validation(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["slug", "--examples"])
    assert result.exit_code == 0


def test_examples_show_notes(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["build", "--examples"])
    line = next(ln for ln in result.output.splitlines() if "--skip-source" in ln)
    assert line.rstrip().endswith("reuse cached datasets")
