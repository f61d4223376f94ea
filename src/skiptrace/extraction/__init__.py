"""Extraction package for skiptrace.

Rule-based entity recognition over free text: a compiled regex pattern
library, the extraction entry point, and phone and address intelligence.
"""
