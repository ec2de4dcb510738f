"""Filesystem, archive and validation helpers."""
