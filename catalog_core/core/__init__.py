"""
Core application utilities: settings, logging, domain errors and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with correlation/tenant context
- Domain error types mapped to HTTP statuses by the API layer
- Dependency helpers (tenant extraction, tenant-scoped DB session)
"""
