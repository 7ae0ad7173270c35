"""Unit tests for rbactree.core."""
