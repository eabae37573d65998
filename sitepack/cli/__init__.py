"""Sitepack CLI: Typer-based command-line interface.

Provides the ``sitepack`` command with subcommands for validating
packages, envelope headers and volume sets, and for creating and
extracting volume sets.

All human-readable output uses Rich; ``--format json`` prints the report
document unchanged so it can be piped.
"""
