"""Domain layer: file records, object storage contract and reconciliation."""
