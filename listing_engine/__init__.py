"""Property search, detail caching, and recommendation engine."""
