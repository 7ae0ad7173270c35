"""Command line interface for inspecting workspace exports."""
