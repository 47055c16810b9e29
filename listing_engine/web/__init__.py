"""HTTP routes over the listing engine."""
