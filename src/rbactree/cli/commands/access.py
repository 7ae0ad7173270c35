"""
Access Command - Show the effective role bindings of a workspace.
"""

import json
import sys

import click
from rich.console import Console
from rich.table import Table

from ...core.inheritance import index_bindings, resolve_effective
from ..utils import echo_error, echo_warning, load_items, load_tree

console = Console()


@click.command()
@click.argument("records_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("bindings_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("workspace_id")
@click.option("--json", "as_json", is_flag=True, help="Print the bindings as JSON")
def access(records_file: str, bindings_file: str, workspace_id: str, as_json: bool) -> None:
    """
    List every role binding that applies to WORKSPACE_ID, including the
    ones inherited from its ancestors.
    """
    workspace_tree = load_tree(records_file)
    if workspace_tree is None:
        sys.exit(1)

    target = workspace_tree.get(workspace_id)
    if target is None:
        echo_error(f"No workspace with id '{workspace_id}'")
        sys.exit(1)

    try:
        index = index_bindings(load_items(bindings_file))
    except ValueError as e:
        echo_error(f"Invalid role binding in {bindings_file}: {e}")
        sys.exit(1)

    effective = resolve_effective(target, index)

    if as_json:
        click.echo(json.dumps([b.model_dump(mode="json") for b in effective], indent=2))
        return

    if not effective:
        echo_warning(f"No role bindings apply to '{target.name}'")
        return

    names = {record.id: record.name for record in workspace_tree.path_to(workspace_id)}
    table = Table(title=" / ".join(names.values()))
    table.add_column("Role")
    table.add_column("Subject")
    table.add_column("Type")
    table.add_column("Inherited from")
    for binding in effective:
        table.add_row(
            binding.role_name or binding.role_id,
            binding.subject_id,
            binding.subject_type.value,
            names[binding.source_workspace_id] if binding.is_inherited else "-",
        )
    console.print(table)
