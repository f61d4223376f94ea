"""Normalization package: schema, address parsing, similarity helpers, and reference data."""
