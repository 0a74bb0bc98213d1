"""User interfaces built on the citesmith core."""
