"""Persistence collaborators: SQLAlchemy engine, schema, repository, workspace."""
