"""Pipeline services: normalization, extraction, merging, joining and output."""
