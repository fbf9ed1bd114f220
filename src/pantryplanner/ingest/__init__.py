"""Ingestion of recipe data from external providers."""
