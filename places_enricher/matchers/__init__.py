"""Fuzzy matching between spreadsheet records and Places results."""
from places_enricher.matchers.similarity import normalize, similarity
from places_enricher.matchers.best_match import overall_similarity, select_best_candidate

__all__ = ["normalize", "similarity", "overall_similarity", "select_best_candidate"]
