"""Infrastructure layer: adapters for the aggregator and persistence."""
