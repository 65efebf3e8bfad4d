"""Decoding, parsing and header matching for uploaded delimited-text files."""
