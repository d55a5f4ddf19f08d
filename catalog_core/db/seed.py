"""
Database seeding utilities for default reference data.

Seeds:
- Default tenant (settings.DEFAULT_TENANT_NAME / DEFAULT_TENANT_SLUG)
- Global dropdown taxonomies: property types, property status, amenities,
  configurations, price ranges, facing directions, BHK types, departments,
  job types, city (with area children) and custom field keys

Every step looks records up before creating them, so running the seed twice
leaves the database unchanged.

Usage:
  python -m catalog_core.db.run_migrations upgrade head
  python -m catalog_core.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.logging import configure_logging
from catalog_core.core.settings import get_app_settings
from catalog_core.db.models.taxonomy import Category, Value
from catalog_core.db.models.tenant import Tenant
from catalog_core.db.session import get_async_session, tenant_context, transactional
from catalog_core.services.slugs import slugify
from catalog_core.services.taxonomy import TaxonomyService, ValueService

logger = logging.getLogger(__name__)

# (category name, is_customizable, description, values)
DEFAULT_TAXONOMIES: List[Tuple[str, bool, str, Sequence[str]]] = [
    ("property_types", True, "Kinds of property", ["Apartment", "Villa", "Plot", "Commercial", "Duplex"]),
    ("property_status", False, "Sales status", ["Available", "Sold", "Under Construction", "Coming Soon"]),
    (
        "amenities",
        True,
        "Project amenities",
        [
            "Swimming Pool",
            "Gymnasium",
            "Parking",
            "24/7 Security",
            "Children's Play Area",
            "Clubhouse",
            "Landscaped Garden",
        ],
    ),
    (
        "configurations",
        True,
        "Unit configurations",
        ["Studio", "1 BHK", "1.5 BHK", "2 BHK", "2.5 BHK", "3 BHK", "3.5 BHK", "4 BHK", "4+ BHK", "Penthouse"],
    ),
    (
        "price_ranges",
        True,
        "Price brackets",
        [
            "Under ₹50 Lakhs",
            "₹50 Lakhs - ₹1 Crore",
            "₹1 - ₹2 Crores",
            "₹2 - ₹3 Crores",
            "₹3 - ₹5 Crores",
            "₹5 - ₹10 Crores",
            "Above ₹10 Crores",
        ],
    ),
    (
        "facing_directions",
        False,
        "Main door facing",
        ["North", "South", "East", "West", "North-East", "North-West", "South-East", "South-West"],
    ),
    ("bhk_types", False, "Bedroom counts", ["Studio", "1 BHK", "2 BHK", "3 BHK", "4 BHK", "5+ BHK"]),
    ("departments", True, "Career departments", ["Sales", "Marketing", "Engineering", "Finance", "Human Resources"]),
    ("job_types", False, "Employment types", ["Full Time", "Part Time", "Contract", "Internship"]),
    ("custom_fields", True, "Keys for free-form entity fields", ["RERA Number", "Possession Date", "Total Land Area"]),
]

# City values with their areas as child values.
DEFAULT_CITIES: Dict[str, Sequence[str]] = {
    "Hyderabad": ["Gachibowli", "Kondapur", "Kokapet", "Financial District"],
    "Bangalore": ["Whitefield", "Sarjapur Road", "Hebbal"],
    "Mumbai": ["Andheri", "Powai", "Thane"],
    "Chennai": ["OMR", "Porur"],
    "Pune": ["Hinjewadi", "Kharadi"],
    "Delhi": [],
    "Gurgaon": ["Golf Course Road"],
    "Noida": [],
}


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with default reference data.

    This function:
      - Creates or retrieves the default tenant
      - Creates missing global dropdown categories and values
    """
    settings = get_app_settings()
    async for session in get_async_session():
        async with transactional(session):
            tenant_id = await _ensure_tenant(session, settings.DEFAULT_TENANT_NAME, settings.DEFAULT_TENANT_SLUG)
        async with tenant_context(session, tenant_id):
            async with transactional(session):
                await seed_taxonomies(session)


async def _ensure_tenant(session: AsyncSession, name: str, slug: str) -> UUID:
    res = await session.execute(select(Tenant).where(Tenant.slug == slug))
    tenant = res.scalar_one_or_none()
    if tenant is None:
        tenant = Tenant(name=name, slug=slug, is_active=True)
        session.add(tenant)
        await session.flush()
        logger.info("Created tenant %s (%s)", slug, tenant.id)
    return tenant.id


async def _ensure_category(
    taxonomy: TaxonomyService,
    name: str,
    *,
    is_customizable: bool,
    description: Optional[str] = None,
    sort_order: int = 0,
) -> Category:
    existing = await taxonomy.categories.find_active_by_name(name, None)
    if existing is not None:
        return existing
    return await taxonomy.create_category(
        name, None, is_customizable, description=description, sort_order=sort_order
    )


async def _ensure_values(
    values: ValueService,
    category: Category,
    texts: Sequence[str],
    parent: Optional[Value] = None,
) -> Dict[str, Value]:
    present = {
        v.slug: v
        for v in await values.values.list_values(
            category_id=category.id,
            tenant_id=None,
            include_global=True,
            parent_id=parent.id if parent else None,
            roots_only=parent is None,
            active_only=True,
        )
    }
    out: Dict[str, Value] = {}
    for position, text in enumerate(texts, start=1):
        row = present.get(slugify(text))
        if row is None:
            row = await values.create_value(
                category.id, text, None, parent.id if parent else None, sort_order=position
            )
        out[text] = row
    return out


# PUBLIC_INTERFACE
async def seed_taxonomies(session: AsyncSession) -> None:
    """Create every default category and global value that is not there yet."""
    taxonomy = TaxonomyService(session)
    values = ValueService(session)

    for position, (name, customizable, description, texts) in enumerate(DEFAULT_TAXONOMIES, start=1):
        category = await _ensure_category(
            taxonomy, name, is_customizable=customizable, description=description, sort_order=position
        )
        await _ensure_values(values, category, texts)

    city = await _ensure_category(
        taxonomy, "city", is_customizable=True, description="Cities and their areas", sort_order=0
    )
    cities = await _ensure_values(values, city, list(DEFAULT_CITIES))
    for city_name, areas in DEFAULT_CITIES.items():
        if areas:
            await _ensure_values(values, city, areas, parent=cities[city_name])
    logger.info("Seeded %d dropdown categories", len(DEFAULT_TAXONOMIES) + 1)


if __name__ == "__main__":
    configure_logging(get_app_settings().LOG_LEVEL)
    asyncio.run(seed_all())
