"""
rbactree CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging

import click

from .commands import access, tree


@click.group()
@click.version_option(package_name="rbactree")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """rbactree: inspect workspace hierarchies and effective access.

    \b
    Quick Start:
      rbactree tree workspaces.json --search prod
      rbactree access workspaces.json bindings.json ws-1
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register commands
main.add_command(tree.tree)
main.add_command(access.access)

if __name__ == "__main__":
    main()
