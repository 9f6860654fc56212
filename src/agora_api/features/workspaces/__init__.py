"""Workspaces and their member lists."""
