"""Filesystem and URL helpers shared by the catalog service."""
