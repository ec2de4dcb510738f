"""Command implementations for the bundleport CLI."""
