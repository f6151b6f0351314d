"""Typer command registrations for the stress CLI."""
