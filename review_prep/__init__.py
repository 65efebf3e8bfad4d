"""CSV/TXT review-export preparation pipeline.

Decodes uploaded exports, locates the content / risk-score columns, normalizes
review text and produces strategy-tagged TXT files, ZIP bundles and risk CSVs.
"""

__version__ = "0.1.0"
