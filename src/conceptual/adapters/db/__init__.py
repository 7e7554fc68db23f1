"""SQLAlchemy plumbing shared by relational adapters."""
