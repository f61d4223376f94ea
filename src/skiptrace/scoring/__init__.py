"""Scoring package: per-entity confidence, relevance, dedupe, and accuracy roll-ups."""
