"""Chart patterns and per-indicator signal scoring."""
