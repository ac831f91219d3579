"""Tests for the CLI entry point."""

import json

import pytest
from click.testing import CliRunner

from entrydb.core.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store_file(tmp_path):
    return str(tmp_path / "items.json")


class TestCliGroup:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "list", "get", "add", "delete", "count"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestInitCommand:
    def test_creates_file(self, runner, tmp_path):
        target = tmp_path / "sub" / "new.json"
        result = runner.invoke(main, ["init", str(target)])
        assert result.exit_code == 0
        assert "Store ready" in result.stdout
        assert target.exists()

    def test_unwritable_location_fails(self, runner, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        result = runner.invoke(main, ["init", str(blocker / "x.json")])
        assert result.exit_code == 1
        assert "initializing the file" in result.output


class TestEntryCommands:
    def test_add_list_get_count(self, runner, store_file):
        assert runner.invoke(main, ["add", store_file, '{"id": 1, "name": "a"}']).exit_code == 0
        assert runner.invoke(main, ["add", store_file, '{"id": 2, "name": "b"}']).exit_code == 0

        listed = runner.invoke(main, ["list", store_file])
        assert listed.exit_code == 0
        assert json.loads(listed.stdout) == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]

        got = runner.invoke(main, ["get", store_file, "2"])
        assert got.exit_code == 0
        assert json.loads(got.stdout) == {"id": 2, "name": "b"}

        counted = runner.invoke(main, ["count", store_file])
        assert counted.stdout.strip() == "2"

    def test_add_replaces_by_key(self, runner, store_file):
        runner.invoke(main, ["add", store_file, '{"id": 1, "name": "old"}'])
        result = runner.invoke(main, ["add", store_file, '{"id": 1, "name": "new"}'])
        assert "Saved id=1" in result.stdout

        listed = runner.invoke(main, ["list", store_file])
        assert json.loads(listed.stdout) == [{"id": 1, "name": "new"}]

    def test_add_no_overwrite_keeps_stored(self, runner, store_file):
        runner.invoke(main, ["add", store_file, '{"id": 1, "name": "old"}'])
        runner.invoke(main, ["add", store_file, '{"id": 1, "name": "new"}', "--no-overwrite"])

        listed = runner.invoke(main, ["list", store_file])
        assert json.loads(listed.stdout) == [{"id": 1, "name": "old"}]

    def test_custom_key_and_string_values(self, runner, store_file):
        runner.invoke(main, ["add", store_file, '{"sku": "A-1", "qty": 3}', "--key", "sku"])
        got = runner.invoke(main, ["get", store_file, "A-1", "--key", "sku"])
        assert got.exit_code == 0
        assert json.loads(got.stdout)["qty"] == 3

    def test_get_missing(self, runner, store_file):
        result = runner.invoke(main, ["get", store_file, "9"])
        assert result.exit_code == 1
        assert "No entry with id=9" in result.output

    def test_delete(self, runner, store_file):
        runner.invoke(main, ["add", store_file, '{"id": 1}'])
        result = runner.invoke(main, ["delete", store_file, "1"])
        assert result.exit_code == 0
        assert "Deleted id=1" in result.stdout

        again = runner.invoke(main, ["delete", store_file, "1"])
        assert "Nothing to delete" in again.stdout
        assert runner.invoke(main, ["count", store_file]).stdout.strip() == "0"

    def test_list_yaml_format(self, runner, store_file):
        runner.invoke(main, ["add", store_file, '{"id": 1, "name": "a"}'])
        result = runner.invoke(main, ["list", store_file, "--format", "yaml"])
        assert result.stdout.strip() == "- id: 1\n  name: a"

    def test_yaml_file_suffix_uses_yaml_codec(self, runner, tmp_path):
        target = tmp_path / "items.yaml"
        runner.invoke(main, ["add", str(target), '{"id": 1, "name": "a"}'])
        assert target.read_text() == "- id: 1\n  name: a\n"


class TestFailures:
    def test_invalid_json_is_usage_error(self, runner, store_file):
        result = runner.invoke(main, ["add", store_file, "{not json"])
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_missing_key_field_is_usage_error(self, runner, store_file):
        result = runner.invoke(main, ["add", store_file, '{"name": "a"}'])
        assert result.exit_code == 2
        assert "'id' field" in result.output

    def test_malformed_store_reports_and_exits(self, runner, tmp_path):
        target = tmp_path / "broken.json"
        target.write_text("[{")
        result = runner.invoke(main, ["list", str(target)])
        assert result.exit_code == 1
        assert "reading the document" in result.output
        assert target.read_text() == "[{"
