"""Ingestion pipeline: upstream client, normalizer, store adapter, orchestrator, scheduler."""
