"""Domain library: storage, lifecycle, integrations and metrics."""
