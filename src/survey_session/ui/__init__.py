"""Console presentation for survey sessions."""
