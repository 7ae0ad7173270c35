"""
Unit tests for the 'tree' and 'access' commands.
"""

import json

import pytest
from click.testing import CliRunner

from rbactree.cli.main import main

WORKSPACES = {
    "data": [
        {"id": "root", "name": "Default", "parent_id": "", "type": "root"},
        {"id": "ws-1", "name": "Production", "parent_id": "root", "type": "standard"},
        {"id": "ws-2", "name": "Development", "parent_id": "root", "type": "standard"},
    ]
}

BINDINGS = [
    {"roleId": "viewer", "roleName": "Workspace Viewer", "subjectId": "ops",
     "subjectType": "group", "workspaceId": "root"},
    {"roleId": "admin", "roleName": "Workspace Admin", "subjectId": "alice",
     "subjectType": "user", "workspaceId": "ws-1"},
]


@pytest.fixture
def files(tmp_path):
    workspaces = tmp_path / "workspaces.json"
    workspaces.write_text(json.dumps(WORKSPACES))
    bindings = tmp_path / "bindings.json"
    bindings.write_text(json.dumps(BINDINGS))
    return workspaces, bindings


class TestTreeCommand:
    """Test the 'tree' command."""

    def test_renders_tree(self, files):
        """Test the hierarchy is rendered with every workspace name."""
        result = CliRunner().invoke(main, ["tree", str(files[0])])

        assert result.exit_code == 0
        assert "Default" in result.output
        assert "Production" in result.output
        assert "Development" in result.output

    def test_search_json(self, files):
        """Test --search narrows the JSON output to matches and their ancestors."""
        result = CliRunner().invoke(main, ["tree", str(files[0]), "--search", "prod", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["id"] == "root"
        assert [c["name"] for c in data["children"]] == ["Production"]

    def test_no_match(self, files):
        """Test a search without matches prints a warning."""
        result = CliRunner().invoke(main, ["tree", str(files[0]), "--search", "staging"])

        assert result.exit_code == 0
        assert "No workspace matches" in result.output

    def test_permissions_file(self, files, tmp_path):
        """Test a scoped access list marks ancestors as not selectable."""
        permissions = tmp_path / "permissions.json"
        permissions.write_text(json.dumps([{
            "permission": "inventory:groups:read",
            "resourceDefinitions": [{"attributeFilter": {"value": ["ws-2"]}}],
        }]))

        result = CliRunner().invoke(main, ["tree", str(files[0]), "-p", str(permissions), "--json"])

        data = json.loads(result.output)
        assert data["selectable"] is False
        assert [c["id"] for c in data["children"]] == ["ws-2"]

    def test_invalid_permissions_file_exits_1(self, files, tmp_path):
        """Test an invalid access list reports an error and exits 1."""
        permissions = tmp_path / "permissions.json"
        permissions.write_text(json.dumps([{"resourceDefinitions": []}]))

        result = CliRunner().invoke(main, ["tree", str(files[0]), "-p", str(permissions)])

        assert result.exit_code == 1
        assert "Invalid permission" in result.output
        assert not isinstance(result.exception, ValueError)

    def test_malformed_hierarchy_exits_1(self, tmp_path):
        """Test a cyclic listing reports the error and exits 1."""
        path = tmp_path / "cyclic.json"
        path.write_text(json.dumps([
            {"id": "a", "name": "A", "parent_id": "b"},
            {"id": "b", "name": "B", "parent_id": "a"},
        ]))

        result = CliRunner().invoke(main, ["tree", str(path)])

        assert result.exit_code == 1
        assert "CyclicHierarchy" in result.output


class TestAccessCommand:
    """Test the 'access' command."""

    def test_json_output(self, files):
        """Test bindings are listed root first with their inherited flag."""
        result = CliRunner().invoke(main, ["access", str(files[0]), str(files[1]), "ws-1", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [(b["role_id"], b["is_inherited"]) for b in data] == [("viewer", True), ("admin", False)]

    def test_table_output(self, files):
        """Test the table shows role names."""
        result = CliRunner().invoke(main, ["access", str(files[0]), str(files[1]), "ws-1"])

        assert result.exit_code == 0
        assert "Workspace Viewer" in result.output
        assert "Workspace Admin" in result.output

    def test_unknown_workspace(self, files):
        """Test an unknown workspace id exits 1."""
        result = CliRunner().invoke(main, ["access", str(files[0]), str(files[1]), "nope"])

        assert result.exit_code == 1
        assert "No workspace with id 'nope'" in result.output

    def test_inherited_only(self, files):
        """Test a workspace without direct bindings shows only inherited ones."""
        result = CliRunner().invoke(main, ["access", str(files[0]), str(files[1]), "ws-2", "--json"])
        assert json.loads(result.output) == [{
            "role_id": "viewer",
            "role_name": "Workspace Viewer",
            "subject_id": "ops",
            "subject_type": "group",
            "source_workspace_id": "root",
            "is_inherited": True,
        }]
