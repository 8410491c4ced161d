"""Domain layer: provider-neutral tool contracts."""
