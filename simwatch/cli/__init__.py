"""simwatch CLI — Typer-based command-line interface.

Provides the ``simwatch`` command with subcommands for replaying a
recorded engine event log, running a synthetic demo, and printing the
version.

All output uses Rich for formatted terminal display.
"""
