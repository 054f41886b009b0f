"""Domain layer: contact model, ports and identity reconciliation."""
