"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area (taxonomy,
associations, attachments, owning entities). They flush but never commit; the
caller owns the transaction (see catalog_core.db.session.transactional).
"""
