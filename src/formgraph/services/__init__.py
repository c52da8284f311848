"""Service layer: the graph materializer and the result-returning services around it."""
