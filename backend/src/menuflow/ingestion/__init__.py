"""Menu ingestion application services and HTTP surface."""
