"""Rule-based categorization of untreated notas by their message text."""
from .engine import categorize, categorize_individual, categorize_group, extract_ids

__all__ = ["categorize", "categorize_individual", "categorize_group", "extract_ids"]
