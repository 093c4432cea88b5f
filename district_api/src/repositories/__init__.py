"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries and patterns for each domain area:
organisation hierarchy, users, data requests, visit sessions/submissions and
location samples.
"""
