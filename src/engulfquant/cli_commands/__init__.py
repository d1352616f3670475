"""CLI subcommands for engulfquant."""
