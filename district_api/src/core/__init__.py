"""
Core application utilities.

This package provides:
- Application-level settings (separate from DB settings)
- The district role hierarchy
- Logging configuration with per-request context
- Dependency helpers (DB session, acting user, domain services)
"""
