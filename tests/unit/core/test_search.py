"""Unit tests for workspace search."""

import pytest

from rbactree.core.search import search_tree
from rbactree.core.tree import WorkspaceTree
from rbactree.core.types import WorkspaceRecord


def ws(id, parent_id, name):
    return WorkspaceRecord(id=id, parent_id=parent_id, name=name)


@pytest.fixture
def tree():
    return WorkspaceTree.from_records([
        ws("root", None, "Default"),
        ws("ws-1", "root", "Production"),
        ws("ws-2", "root", "Development"),
    ])


@pytest.fixture
def deep_tree():
    return WorkspaceTree.from_records([
        ws("root", None, "Default"),
        ws("eu", "root", "Europe"),
        ws("eu-prod", "eu", "EU Production"),
        ws("eu-dev", "eu", "EU Development"),
        ws("us", "root", "Americas"),
        ws("us-prod", "us", "US Production"),
        ws("us-prod-db", "us-prod", "Databases"),
        ws("lab", "root", "Lab"),
    ])


class TestSearchTree:
    """Test searching the workspace tree by name."""

    def test_match_keeps_ancestor_path(self, tree):
        """Test a match keeps the path from the root."""
        result = search_tree(tree, "prod")

        assert result.is_filtered
        assert result.tree.node_ids() == {"root", "ws-1"}
        assert [c.name for c in result.tree.root.children] == ["Production"]
        assert result.matched_ids == {"ws-1"}

    def test_empty_term_is_identity(self, tree):
        """Test an empty term returns the same tree unfiltered."""
        result = search_tree(tree, "")

        assert result.tree is tree
        assert not result.is_filtered

    def test_whitespace_term_is_identity(self, tree):
        """Test a blank term is treated as no search."""
        assert search_tree(tree, "   ").tree is tree

    def test_no_matches_is_distinct_from_not_searched(self, tree):
        """Test a search without matches is still marked filtered."""
        result = search_tree(tree, "staging")

        assert result.tree is None
        assert result.is_filtered
        assert result.is_empty

    def test_nothing_loaded(self):
        """Test searching without a tree gives an unfiltered empty result."""
        result = search_tree(None, "prod")

        assert result.tree is None
        assert not result.is_filtered
        assert not result.is_empty

    def test_case_insensitive(self, tree):
        """Test matching ignores case."""
        assert search_tree(tree, "PRODUCTION").tree.node_ids() == {"root", "ws-1"}

    def test_source_tree_untouched(self, deep_tree):
        """Test searching does not modify the source tree."""
        before = deep_tree.to_dict()
        search_tree(deep_tree, "prod")

        assert deep_tree.to_dict() == before
        assert len(deep_tree) == 8

    def test_matching_parent_does_not_keep_non_matching_children(self, tree):
        """Test a matching parent does not keep its other children."""
        result = search_tree(tree, "default")
        assert result.tree.node_ids() == {"root"}

    def test_ancestor_preservation(self, deep_tree):
        """Test every ancestor of every match survives in a deep tree."""
        result = search_tree(deep_tree, "prod")
        kept = result.tree.node_ids()

        assert kept == {"root", "eu", "eu-prod", "us", "us-prod"}
        for node in result.tree.iter_nodes():
            # every ancestor survives
            assert {a.id for a in node.ancestors()} <= kept
            # every node matches or leads to a match
            matches = "prod" in node.name.lower()
            assert matches or result.tree.descendant_ids(node.id)

    def test_search_nodes_remain_selectable(self, deep_tree):
        """Test search alone never marks nodes as passthrough."""
        result = search_tree(deep_tree, "databases")
        assert all(node.is_selectable for node in result.tree.iter_nodes())
