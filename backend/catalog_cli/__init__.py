"""Typer command line client for the catalog API."""
