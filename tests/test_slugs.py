from __future__ import annotations

from typing import List, Set
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, ValidationError
from catalog_core.db.models import Value
from catalog_core.services.catalog import EntityService
from catalog_core.services.slugs import SlugScope, UniquenessResolver, require_slug, slugify
from catalog_core.services.taxonomy import TaxonomyService, ValueService

from conftest import make_category, make_tenant, make_value


def test_slugify_lowercases_and_collapses_separators() -> None:
    assert slugify("Studio Apartment") == "studio-apartment"
    assert slugify("  24/7   Security!! ") == "24-7-security"
    assert slugify("Children's Play Area") == "children-s-play-area"


def test_slugify_is_idempotent() -> None:
    for text in ["Studio Apartment!!", "North-East", "₹50 Lakhs - ₹1 Crore", "a--b"]:
        once = slugify(text)
        assert slugify(once) == once


def test_slugify_folds_diacritics() -> None:
    assert slugify("Café Crème") == "cafe-creme"


def test_slugify_truncates_without_trailing_hyphen() -> None:
    assert slugify("abc def", max_length=4) == "abc"


def test_slugify_empty_and_symbol_only_text() -> None:
    assert slugify("") == ""
    assert slugify(None) == ""
    assert slugify("!!!") == ""


def test_require_slug_rejects_text_without_alphanumerics() -> None:
    with pytest.raises(ValidationError):
        require_slug("   ")


def test_resolver_returns_bare_base_when_free(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        category = await make_category(session, "amenities")
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        return await UniquenessResolver(session).resolve("parking", scope)

    assert db(scenario) == "parking"


def test_resolver_suffixes_in_order(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        category = await make_category(session, "amenities")
        await make_value(session, category, "Parking", "parking")
        await make_value(session, category, "Parking", "parking-1")
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        return await UniquenessResolver(session).resolve("parking", scope)

    assert db(scenario) == "parking-2"


def test_resolver_treats_numeric_suffix_in_base_as_text(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        category = await make_category(session, "configurations")
        await make_value(session, category, "Block 2", "block-2")
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        return await UniquenessResolver(session).resolve("block-2", scope)

    assert db(scenario) == "block-2-1"


def test_resolver_excludes_own_row(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        category = await make_category(session, "amenities")
        own = await make_value(session, category, "Parking", "parking")
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        return await UniquenessResolver(session).resolve("parking", scope, exclude_id=own.id)

    assert db(scenario) == "parking"


def test_resolver_ignores_inactive_rows_in_active_scope(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        category = await make_category(session, "amenities")
        old = await make_value(session, category, "Parking", "parking")
        old.is_active = False
        await session.flush()
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        return await UniquenessResolver(session).resolve("parking", scope)

    assert db(scenario) == "parking"


def blind_once(resolver: UniquenessResolver, *slugs: str) -> None:
    """Make the existence check miss `slugs` once, as if a concurrent writer
    inserted them between the check and the write."""
    real_slug_taken = resolver.repo.slug_taken
    blind: Set[str] = set(slugs)

    async def racing_slug_taken(scope_, slug, exclude_id):
        if slug in blind:
            blind.discard(slug)
            return False
        return await real_slug_taken(scope_, slug, exclude_id)

    resolver.repo.slug_taken = racing_slug_taken


def test_assign_retries_after_losing_insert_race(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        tenant = await make_tenant(session)
        category = await make_category(session, "amenities")
        await make_value(session, category, "Gym", "gym", tenant.id)
        resolver = UniquenessResolver(session)
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=tenant.id)

        blind_once(resolver, "gym")
        row = Value(category_id=category.id, tenant_id=tenant.id, value="Gym", is_active=True)
        return await resolver.assign(row, "gym", scope)

    assert db(scenario) == "gym-1"


def test_global_values_race_on_the_storage_index(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        zones = await TaxonomyService(session).create_category("zones")
        resolver = UniquenessResolver(session)
        values = ValueService(session, resolver=resolver)
        first = await values.create_value(zones.id, "North")
        blind_once(resolver, "north")
        second = await values.create_value(zones.id, "North")
        return [first.slug, second.slug]

    assert db(scenario) == ["north", "north-1"]


def test_root_content_categories_race_on_the_storage_index(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        tenant = await make_tenant(session)
        resolver = UniquenessResolver(session)
        categories = EntityService(session, "content_category", resolver=resolver)
        first = await categories.create(tenant.id, "Tips")
        blind_once(resolver, "tips")
        second = await categories.create(tenant.id, "Tips")
        return [first.slug, second.slug]

    assert db(scenario) == ["tips", "tips-1"]


def test_storage_rejects_duplicate_root_category_names(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        await make_category(session, "amenities")
        await make_category(session, "amenities")

    with pytest.raises(IntegrityError):
        db(scenario)


def test_assign_gives_up_after_max_attempts(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        tenant = await make_tenant(session)
        category = await make_category(session, "amenities")
        await make_value(session, category, "Gym", "gym", tenant.id)
        resolver = UniquenessResolver(session, max_attempts=1)
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=tenant.id)

        blind_once(resolver, "gym")
        row = Value(category_id=category.id, tenant_id=tenant.id, value="Gym", is_active=True)
        await resolver.assign(row, "gym", scope)

    with pytest.raises(ConflictError):
        db(scenario)


def test_assign_does_not_mistake_other_integrity_errors_for_collisions(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        category = await make_category(session, "amenities")
        resolver = UniquenessResolver(session)
        scope = SlugScope.of(Value, active_only=True, category_id=category.id, tenant_id=None)
        row = Value(category_id=category.id, tenant_id=uuid4(), value="Gym", is_active=True)
        await resolver.assign(row, "gym", scope)

    with pytest.raises(IntegrityError):
        db(scenario)
