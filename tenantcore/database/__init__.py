"""
Persistence layer: SQLAlchemy models, the generic CRUD service and startup seeding.
"""
