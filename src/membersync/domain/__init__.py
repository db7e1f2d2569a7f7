"""Domain layer: membership model, reconciliation and retry logic."""
