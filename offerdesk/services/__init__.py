"""Service layer: tenant-scoped business operations over a SQLAlchemy session."""
