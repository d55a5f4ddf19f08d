"""
API route modules.

This package contains subrouters for:
- Dropdowns: categories and values, grouped dropdown payloads
- Associations: links through any registered junction table
- Attachments: SEO metadata and custom fields per entity
- Catalog: properties and other owning entities addressed by slug

Routers are included from catalog_core.api.main (under the /api/v1 prefix).
"""
