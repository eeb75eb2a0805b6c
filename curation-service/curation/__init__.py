"""
Place curation service: collaborative field suggestions, resolution and
edit history for Place documents.
"""

__version__ = "0.1.0"
