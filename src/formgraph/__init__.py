"""formgraph — materialize untyped form data into typed record graphs."""

__version__ = "0.3.0"
