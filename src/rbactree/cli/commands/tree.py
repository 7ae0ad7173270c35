"""
Tree Command - Render a workspace hierarchy.
"""

import json
import sys
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.tree import Tree

from ...core.search import search_tree
from ...core.tree import TreeNode
from ...core.visibility import filter_visible
from ..utils import echo_error, echo_warning, load_items, load_tree

console = Console()


@click.command()
@click.argument("records_file", type=click.Path(exists=True, dir_okay=False))
@click.option("-s", "--search", "term", default="", help="Keep workspaces whose name contains TERM")
@click.option("-p", "--permissions", "permissions_file", type=click.Path(exists=True, dir_okay=False),
              help="Caller access list (JSON) to restrict visibility")
@click.option("-x", "--exclude", "exclude_ids", multiple=True, help="Workspace id to leave out with its subtree")
@click.option("--json", "as_json", is_flag=True, help="Print the nested tree as JSON")
def tree(records_file: str, term: str, permissions_file: Optional[str],
         exclude_ids: Tuple[str, ...], as_json: bool) -> None:
    """
    Show the workspace tree built from a listing export.

    Ancestors kept only for context are dimmed.
    """
    workspace_tree = load_tree(records_file, exclude_ids)
    if workspace_tree is None:
        sys.exit(1)

    if permissions_file:
        try:
            workspace_tree = filter_visible(workspace_tree, load_items(permissions_file))
        except ValueError as e:
            echo_error(f"Invalid permission in {permissions_file}: {e}")
            sys.exit(1)
        if workspace_tree is None:
            echo_warning("No workspace is visible with these permissions")
            return

    result = search_tree(workspace_tree, term)
    if result.is_empty:
        echo_warning(f"No workspace matches '{result.term}'")
        return

    if as_json:
        click.echo(json.dumps(result.tree.to_dict(), indent=2))
        return

    root = result.tree.root
    rendered = Tree(_label(root, result.matched_ids))
    _add_children(rendered, root, result.matched_ids)
    console.print(rendered)


def _label(node: TreeNode, matched) -> str:
    text = f"{node.name} [dim]({node.id})[/dim]"
    if not node.is_selectable:
        return f"[dim]{text}[/dim]"
    if node.id in matched:
        return f"[bold green]{text}[/bold green]"
    return text


def _add_children(branch: Tree, node: TreeNode, matched) -> None:
    for child in node.children:
        _add_children(branch.add(_label(child, matched)), child, matched)
