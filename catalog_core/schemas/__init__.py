"""
Public Pydantic schemas used by FastAPI routes and tests.

Schemas are grouped by domain module (taxonomy, associations, attachments,
catalog) next to the shared envelopes in common.
"""

from .common import ErrorResponse, MessageResponse  # noqa: F401
