"""Episode-list page extraction."""
