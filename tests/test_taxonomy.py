from __future__ import annotations

from typing import Any, Dict, List
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_core.services.taxonomy import TaxonomyService, ValueService

from conftest import make_tenant


def test_values_with_same_text_get_suffixed_slugs(db) -> None:
    async def scenario(session: AsyncSession) -> List[Any]:
        category = await TaxonomyService(session).create_category("property_types")
        values = ValueService(session)
        first = await values.create_value(category.id, "Studio Apartment")
        second = await values.create_value(category.id, "Studio Apartment!!")
        return [category.level, first.slug, second.slug]

    assert db(scenario) == [0, "studio-apartment", "studio-apartment-1"]


def test_same_text_in_other_category_or_tenant_does_not_collide(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        acme = await make_tenant(session, "acme")
        globex = await make_tenant(session, "globex")
        taxonomy = TaxonomyService(session)
        facing = await taxonomy.create_category("facing_directions")
        zones = await taxonomy.create_category("zones")
        values = ValueService(session)
        return [
            (await values.create_value(facing.id, "North")).slug,
            (await values.create_value(zones.id, "North")).slug,
            (await values.create_value(zones.id, "North", acme.id)).slug,
            (await values.create_value(zones.id, "North", globex.id)).slug,
        ]

    assert db(scenario) == ["north", "north", "north", "north"]


def test_subcategory_gets_level_one(db) -> None:
    async def scenario(session: AsyncSession) -> int:
        taxonomy = TaxonomyService(session)
        root = await taxonomy.create_category("amenities")
        child = await taxonomy.create_category("outdoor", root.id)
        return child.level

    assert db(scenario) == 1


def test_subcategory_under_level_one_parent_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        root = await taxonomy.create_category("amenities")
        child = await taxonomy.create_category("outdoor", root.id)
        await taxonomy.create_category("sports", child.id)

    with pytest.raises(ValidationError):
        db(scenario)


def test_subcategory_under_missing_parent_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        from uuid import uuid4

        await TaxonomyService(session).create_category("outdoor", uuid4())

    with pytest.raises(ValidationError):
        db(scenario)


def test_duplicate_category_name_under_same_parent_conflicts(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        await taxonomy.create_category("amenities")
        await taxonomy.create_category("amenities")

    with pytest.raises(ConflictError):
        db(scenario)


def test_deactivated_category_frees_its_name(db) -> None:
    async def scenario(session: AsyncSession) -> bool:
        taxonomy = TaxonomyService(session)
        old = await taxonomy.create_category("amenities")
        await taxonomy.deactivate_category(old.id)
        new = await taxonomy.create_category("amenities")
        return new.id != old.id and new.is_active

    assert db(scenario) is True


def test_get_category_by_name_looks_under_the_given_parent(db) -> None:
    async def scenario(session: AsyncSession) -> List[bool]:
        taxonomy = TaxonomyService(session)
        root = await taxonomy.create_category("amenities")
        child = await taxonomy.create_category("outdoor", root.id)
        found_root = await taxonomy.get_category_by_name("amenities")
        found_child = await taxonomy.get_category_by_name("outdoor", root.id)
        with pytest.raises(NotFoundError):
            await taxonomy.get_category_by_name("outdoor")
        await taxonomy.deactivate_category(root.id)
        with pytest.raises(NotFoundError):
            await taxonomy.get_category_by_name("amenities")
        return [found_root.id == root.id, found_child.id == child.id]

    assert db(scenario) == [True, True]


def test_renaming_category_onto_active_sibling_conflicts(db) -> None:
    async def scenario(session: AsyncSession) -> str:
        taxonomy = TaxonomyService(session)
        await taxonomy.create_category("amenities")
        zones = await taxonomy.create_category("zones")
        with pytest.raises(ConflictError):
            await taxonomy.update_category(zones.id, name="amenities")
        renamed = await taxonomy.update_category(zones.id, name=" regions ", sort_order=4)
        return f"{renamed.name}:{renamed.sort_order}"

    assert db(scenario) == "regions:4"


def test_reactivate_category_restores_it(db) -> None:
    async def scenario(session: AsyncSession) -> List[bool]:
        taxonomy = TaxonomyService(session)
        category = await taxonomy.create_category("amenities")
        await taxonomy.deactivate_category(category.id)
        restored = await taxonomy.reactivate_category(category.id)
        again = await taxonomy.reactivate_category(category.id)
        return [restored.is_active, again.id == category.id]

    assert db(scenario) == [True, True]


def test_reactivate_category_whose_name_was_reused_conflicts(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        old = await taxonomy.create_category("amenities")
        await taxonomy.deactivate_category(old.id)
        await taxonomy.create_category("amenities")
        await taxonomy.reactivate_category(old.id)

    with pytest.raises(ConflictError):
        db(scenario)


def test_reactivate_category_under_inactive_parent_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        root = await taxonomy.create_category("amenities")
        child = await taxonomy.create_category("outdoor", root.id)
        await taxonomy.deactivate_category(root.id)
        await taxonomy.reactivate_category(child.id)

    with pytest.raises(ValidationError):
        db(scenario)


def test_list_categories_orders_by_sort_order_then_name(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        taxonomy = TaxonomyService(session)
        await taxonomy.create_category("zeta", sort_order=1)
        await taxonomy.create_category("beta", sort_order=2)
        await taxonomy.create_category("alpha", sort_order=2)
        return [c.name for c in await taxonomy.list_categories()]

    assert db(scenario) == ["zeta", "alpha", "beta"]


def test_category_tree_nests_subcategories(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, List[str]]:
        taxonomy = TaxonomyService(session)
        amenities = await taxonomy.create_category("amenities")
        await taxonomy.create_category("outdoor", amenities.id)
        await taxonomy.create_category("indoor", amenities.id)
        await taxonomy.create_category("city")
        return {node.name: [c.name for c in node.children] for node in await taxonomy.category_tree()}

    assert db(scenario) == {"amenities": ["indoor", "outdoor"], "city": []}


def test_deactivate_category_cascades_to_subcategories_and_values(db) -> None:
    async def scenario(session: AsyncSession) -> List[bool]:
        taxonomy = TaxonomyService(session)
        values = ValueService(session)
        root = await taxonomy.create_category("amenities")
        child = await taxonomy.create_category("outdoor", root.id)
        pool = await values.create_value(root.id, "Swimming Pool")
        garden = await values.create_value(child.id, "Garden")
        await taxonomy.deactivate_category(root.id)
        return [
            (await taxonomy.get_category(root.id)).is_active,
            (await taxonomy.get_category(child.id)).is_active,
            (await values.get_value(pool.id)).is_active,
            (await values.get_value(garden.id)).is_active,
        ]

    assert db(scenario) == [False, False, False, False]


def test_deactivate_category_without_cascade_refuses_when_referenced(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        root = await taxonomy.create_category("amenities")
        await ValueService(session).create_value(root.id, "Parking")
        await taxonomy.deactivate_category(root.id, cascade=False)

    with pytest.raises(ConflictError):
        db(scenario)


def test_deactivate_unknown_category_is_not_found(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        from uuid import uuid4

        await TaxonomyService(session).deactivate_category(uuid4())

    with pytest.raises(NotFoundError):
        db(scenario)


def test_tenant_value_in_fixed_category_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        tenant = await make_tenant(session)
        status = await TaxonomyService(session).create_category("property_status", is_customizable=False)
        await ValueService(session).create_value(status.id, "Sold Out", tenant.id)

    with pytest.raises(ValidationError):
        db(scenario)


def test_value_in_inactive_category_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        category = await taxonomy.create_category("amenities")
        await taxonomy.deactivate_category(category.id)
        await ValueService(session).create_value(category.id, "Parking")

    with pytest.raises(ValidationError):
        db(scenario)


def test_value_for_unknown_tenant_is_not_found(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        category = await TaxonomyService(session).create_category("amenities")
        await ValueService(session).create_value(category.id, "Parking", uuid4())

    with pytest.raises(NotFoundError):
        db(scenario)


def test_value_with_empty_slug_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        category = await TaxonomyService(session).create_category("amenities")
        await ValueService(session).create_value(category.id, "?!")

    with pytest.raises(ValidationError):
        db(scenario)


def test_area_path_resolves_city_first(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        city = await TaxonomyService(session).create_category("city")
        values = ValueService(session)
        hyderabad = await values.create_value(city.id, "Hyderabad")
        kokapet = await values.create_value(city.id, "Kokapet", parent_id=hyderabad.id)
        return [v.slug for v in await values.resolve_path(kokapet.id)]

    assert db(scenario) == ["hyderabad", "kokapet"]


def test_parent_value_from_other_category_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        taxonomy = TaxonomyService(session)
        city = await taxonomy.create_category("city")
        amenities = await taxonomy.create_category("amenities")
        values = ValueService(session)
        hyderabad = await values.create_value(city.id, "Hyderabad")
        await values.create_value(amenities.id, "Parking", parent_id=hyderabad.id)

    with pytest.raises(ValidationError):
        db(scenario)


def test_grandchild_value_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        city = await TaxonomyService(session).create_category("city")
        values = ValueService(session)
        hyderabad = await values.create_value(city.id, "Hyderabad")
        kokapet = await values.create_value(city.id, "Kokapet", parent_id=hyderabad.id)
        await values.create_value(city.id, "Phase 1", parent_id=kokapet.id)

    with pytest.raises(ValidationError):
        db(scenario)


def test_parent_value_of_other_tenant_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        acme = await make_tenant(session, "acme")
        globex = await make_tenant(session, "globex")
        city = await TaxonomyService(session).create_category("city")
        values = ValueService(session)
        springfield = await values.create_value(city.id, "Springfield", acme.id)
        await values.create_value(city.id, "Downtown", globex.id, parent_id=springfield.id)

    with pytest.raises(ValidationError):
        db(scenario)


class CountingResolver:
    """Wraps a resolver and counts uniqueness lookups."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.repo = inner.repo
        self.calls = 0

    def base_slug(self, text: str) -> str:
        return self.inner.base_slug(text)

    async def assign(self, *args: Any, **kwargs: Any) -> str:
        self.calls += 1
        return await self.inner.assign(*args, **kwargs)


def test_rename_with_unchanged_text_skips_uniqueness_check(db) -> None:
    async def scenario(session: AsyncSession) -> List[Any]:
        from catalog_core.services.slugs import UniquenessResolver

        category = await TaxonomyService(session).create_category("amenities")
        resolver = CountingResolver(UniquenessResolver(session))
        values = ValueService(session, resolver=resolver)
        parking = await values.create_value(category.id, "Parking")
        calls_after_create = resolver.calls
        renamed = await values.rename_value(parking.id, "  Parking ")
        return [renamed.slug, resolver.calls - calls_after_create]

    assert db(scenario) == ["parking", 0]


def test_rename_regenerates_slug_excluding_itself(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        category = await TaxonomyService(session).create_category("amenities")
        values = ValueService(session)
        await values.create_value(category.id, "Covered Parking")
        parking = await values.create_value(category.id, "Parking")
        first = (await values.rename_value(parking.id, "PARKING")).slug
        second = (await values.rename_value(parking.id, "Covered Parking")).slug
        return [first, second]

    assert db(scenario) == ["parking", "covered-parking-1"]


def test_deactivate_value_cascades_to_children(db) -> None:
    async def scenario(session: AsyncSession) -> List[bool]:
        city = await TaxonomyService(session).create_category("city")
        values = ValueService(session)
        pune = await values.create_value(city.id, "Pune")
        hinjewadi = await values.create_value(city.id, "Hinjewadi", parent_id=pune.id)
        await values.deactivate_value(pune.id)
        return [(await values.get_value(pune.id)).is_active, (await values.get_value(hinjewadi.id)).is_active]

    assert db(scenario) == [False, False]


def test_reactivate_value_takes_fresh_slug_when_old_one_was_claimed(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        category = await TaxonomyService(session).create_category("amenities")
        values = ValueService(session)
        old = await values.create_value(category.id, "Parking")
        await values.deactivate_value(old.id)
        new = await values.create_value(category.id, "Parking")
        revived = await values.reactivate_value(old.id)
        return [new.slug, revived.slug]

    assert db(scenario) == ["parking", "parking-1"]


def test_reorder_values_sets_positions(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        category = await TaxonomyService(session).create_category("bhk_types")
        values = ValueService(session)
        one = await values.create_value(category.id, "1 BHK")
        two = await values.create_value(category.id, "2 BHK")
        three = await values.create_value(category.id, "3 BHK")
        await values.reorder_values([three.id, one.id, two.id])
        return [v.value for v in await values.list_values(category.id)]

    assert db(scenario) == ["3 BHK", "1 BHK", "2 BHK"]


def test_grouped_values_show_global_and_own_tenant_values(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, List[str]]:
        acme = await make_tenant(session, "acme")
        globex = await make_tenant(session, "globex")
        category = await TaxonomyService(session).create_category("amenities")
        values = ValueService(session)
        await values.create_value(category.id, "Parking", sort_order=1)
        await values.create_value(category.id, "Helipad", acme.id, sort_order=2)
        await values.create_value(category.id, "Moat", globex.id, sort_order=3)
        grouped = await values.grouped_values(acme.id)
        return {name: [v.value for v in rows] for name, rows in grouped.items()}

    assert db(scenario) == {"amenities": ["Parking", "Helipad"]}
