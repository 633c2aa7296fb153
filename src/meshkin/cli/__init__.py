"""Command-line interface: ``meshkin`` (see cli.main)."""
