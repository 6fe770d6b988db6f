"""Bidirectional synchronisation between an Obsidian vault and WikiJS."""

__version__ = "0.4.0"
