"""Unit tests for effective role-binding resolution."""

import asyncio

import pytest

from rbactree.core.inheritance import (
    index_bindings,
    resolve_effective,
    resolve_effective_async,
    split_effective,
    summarize_by_subject,
)
from rbactree.core.tree import WorkspaceTree
from rbactree.core.types import EffectiveBinding, RoleBinding, SubjectType, WorkspaceRecord


def ws(id, parent_id):
    return WorkspaceRecord(id=id, parent_id=parent_id, name=id.upper())


def bind(role, workspace, subject="admins", subject_type="group"):
    return RoleBinding(
        role_id=role,
        role_name=role.title(),
        subject_id=subject,
        subject_type=subject_type,
        workspace_id=workspace,
    )


@pytest.fixture
def tree():
    return WorkspaceTree.from_records([
        ws("root", None),
        ws("a", "root"),
        ws("b", "a"),
        ws("n", "b"),
        ws("ws-1", "root"),
    ])


class TestResolveEffective:
    """Test effective binding resolution along the ancestor chain."""

    def test_inherits_from_root(self, tree):
        """Test a child sees the root's bindings as inherited."""
        index = {"root": [bind("viewer", "root")]}

        effective = resolve_effective(tree.node("ws-1"), index)

        assert effective == [
            EffectiveBinding(
                role_id="viewer",
                role_name="Viewer",
                subject_id="admins",
                subject_type=SubjectType.GROUP,
                source_workspace_id="root",
                is_inherited=True,
            )
        ]

    def test_root_to_target_order(self, tree):
        """Test bindings come back ordered from the root down to the target."""
        index = index_bindings([
            bind("r-n", "n"),
            bind("r-b", "b"),
            bind("r-root", "root"),
            bind("r-a", "a"),
            bind("r-root-2", "root", subject="alice", subject_type="user"),
        ])

        effective = resolve_effective(tree.node("n"), index)

        assert [e.role_id for e in effective] == ["r-root", "r-root-2", "r-a", "r-b", "r-n"]
        assert [e.is_inherited for e in effective] == [True, True, True, True, False]
        assert [e.source_workspace_id for e in effective] == ["root", "root", "a", "b", "n"]

    def test_root_yields_only_direct(self, tree):
        """Test the root only has direct bindings."""
        index = index_bindings([bind("viewer", "root"), bind("editor", "a")])
        effective = resolve_effective(tree.root, index)

        assert [e.role_id for e in effective] == ["viewer"]
        assert not effective[0].is_inherited

    def test_no_bindings_is_empty_list(self, tree):
        """Test no bindings anywhere gives an empty list."""
        assert resolve_effective(tree.node("n"), {}) == []

    def test_no_shadowing(self, tree):
        """Test the same role at two levels is reported at both."""
        index = index_bindings([bind("viewer", "root"), bind("viewer", "n")])
        effective = resolve_effective(tree.node("n"), index)

        assert [(e.role_id, e.source_workspace_id) for e in effective] == [("viewer", "root"), ("viewer", "n")]

    def test_exact_duplicates_collapse(self, tree):
        """Test exact repeats of a binding appear once."""
        index = {"a": [bind("viewer", "a"), bind("viewer", "a")]}
        assert len(resolve_effective(tree.node("b"), index)) == 1

    def test_misanchored_binding_is_skipped(self, tree):
        """Test a binding indexed under the wrong workspace is ignored."""
        index = {"a": [bind("viewer", "elsewhere")]}
        assert resolve_effective(tree.node("b"), index) == []

    def test_removed_binding_disappears_after_rebuild(self, tree):
        """Test re-indexing drops bindings that were removed."""
        bindings = [bind("viewer", "a"), bind("editor", "b")]
        assert [e.role_id for e in resolve_effective(tree.node("n"), index_bindings(bindings))] == ["viewer", "editor"]

        rebuilt = WorkspaceTree.from_records(tree.records())
        effective = resolve_effective(rebuilt.node("n"), index_bindings(bindings[1:]))

        assert [e.role_id for e in effective] == ["editor"]


class TestIndexBindings:
    """Test grouping bindings by workspace."""

    def test_accepts_api_dicts(self):
        """Test raw API dicts are accepted."""
        index = index_bindings([
            {"roleId": "viewer", "roleName": "Viewer", "subjectId": "u1",
             "subjectType": "user", "workspaceId": "root"},
        ])
        assert index["root"][0].subject_type == SubjectType.USER


class TestSummaries:
    """Test direct/inherited splits and per-subject summaries."""

    def test_split_effective(self, tree):
        """Test bindings are split into direct and inherited."""
        index = index_bindings([bind("viewer", "root"), bind("editor", "n")])
        direct, inherited = split_effective(resolve_effective(tree.node("n"), index))

        assert [e.role_id for e in direct] == ["editor"]
        assert [e.role_id for e in inherited] == ["viewer"]

    def test_summarize_by_subject(self, tree):
        """Test subjects are summarized with their nearest inherited source."""
        index = index_bindings([
            bind("viewer", "root", subject="g1"),
            bind("editor", "a", subject="g1"),
            bind("viewer", "root", subject="g2"),
            bind("admin", "n", subject="g2"),
        ])

        rows = {row.subject_id: row for row in summarize_by_subject(resolve_effective(tree.node("n"), index))}

        assert rows["g1"].role_ids == ["viewer", "editor"]
        assert rows["g1"].inherited_from == "a"
        assert not rows["g1"].has_direct
        assert rows["g2"].role_count == 2
        assert rows["g2"].inherited_from is None
        assert rows["g2"].source_workspace_ids == ["root", "n"]


class TestResolveAsync:
    """Test resolution through an asynchronous bindings fetcher."""

    def test_fetches_each_ancestor_root_first(self, tree):
        """Test the fetcher is called once per ancestor, root first."""
        calls = []
        store = {"root": [bind("viewer", "root")], "b": [bind("editor", "b")]}

        def fetch(workspace_id):
            calls.append(workspace_id)
            return store.get(workspace_id, [])

        effective = asyncio.run(resolve_effective_async(tree.node("n"), fetch))

        assert calls == ["root", "a", "b", "n"]
        assert [e.role_id for e in effective] == ["viewer", "editor"]

    def test_async_fetcher(self, tree):
        """Test awaitable fetchers are supported."""
        async def fetch(workspace_id):
            await asyncio.sleep(0)
            return [bind("viewer", workspace_id)]

        effective = asyncio.run(resolve_effective_async(tree.node("a"), fetch))

        assert [(e.source_workspace_id, e.is_inherited) for e in effective] == [("root", True), ("a", False)]
