"""HTTP surface of the research co-pilot."""
