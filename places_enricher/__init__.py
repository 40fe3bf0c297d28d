"""Checkpointed, quota-aware Google Places enrichment of spreadsheet business records."""
