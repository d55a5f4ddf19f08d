from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_core.core.errors import ConflictError, NotFoundError, ValidationError
from catalog_core.db.models import EntityType, SeoMetadata
from catalog_core.services.associations import AssociationGraph
from catalog_core.services.attachments import (
    AttachmentResolver,
    CustomFieldService,
    coerce_entity_type,
    effective_seo,
)
from catalog_core.services.catalog import EntityService, PropertyService
from catalog_core.services.taxonomy import TaxonomyService, ValueService

from conftest import make_tenant


def test_partial_upserts_merge_fields(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, Any]:
        tenant = await make_tenant(session)
        entity_id = uuid4()
        seo = AttachmentResolver(session)
        first = await seo.upsert_attachment(tenant.id, "property", entity_id, {"meta_title": "X"})
        second = await seo.upsert_attachment(tenant.id, "property", entity_id, {"meta_description": "Y"})
        return {
            "same_row": first.id == second.id,
            "meta_title": second.meta_title,
            "meta_description": second.meta_description,
        }

    assert db(scenario) == {"same_row": True, "meta_title": "X", "meta_description": "Y"}


def test_upsert_merges_into_attachment_created_by_concurrent_writer(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, Any]:
        tenant = await make_tenant(session)
        entity_id = uuid4()
        seo = AttachmentResolver(session)
        first = await seo.upsert_attachment(tenant.id, "property", entity_id, {"meta_title": "X"})
        first_id = first.id

        # The first lookup misses the row, as if another transaction committed it meanwhile.
        real_get_for = seo.repo.get_for
        lookups: List[Any] = []

        async def stale_get_for(*args: Any) -> Optional[SeoMetadata]:
            lookups.append(args)
            return None if len(lookups) == 1 else await real_get_for(*args)

        seo.repo.get_for = stale_get_for
        second = await seo.upsert_attachment(tenant.id, "property", entity_id, {"meta_description": "Y"})
        rows = await session.scalar(select(func.count()).select_from(SeoMetadata))
        return {
            "same_row": second.id == first_id,
            "meta_title": second.meta_title,
            "meta_description": second.meta_description,
            "rows": rows,
        }

    assert db(scenario) == {"same_row": True, "meta_title": "X", "meta_description": "Y", "rows": 1}


def test_attachments_are_scoped_by_tenant_and_type(db) -> None:
    async def scenario(session: AsyncSession) -> List[Optional[str]]:
        acme = await make_tenant(session, "acme")
        globex = await make_tenant(session, "globex")
        entity_id = uuid4()
        seo = AttachmentResolver(session)
        await seo.upsert_attachment(acme.id, EntityType.PROPERTY, entity_id, {"meta_title": "Acme"})
        own = await seo.get_attachment(acme.id, "property", entity_id)
        other_tenant = await seo.get_attachment(globex.id, "property", entity_id)
        other_type = await seo.get_attachment(acme.id, "page", entity_id)
        return [own.meta_title if own else None, other_tenant, other_type]

    assert db(scenario) == ["Acme", None, None]


def test_unknown_entity_type_is_rejected() -> None:
    with pytest.raises(ValidationError):
        coerce_entity_type("invoice")


def test_unknown_seo_field_is_rejected(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        tenant = await make_tenant(session)
        await AttachmentResolver(session).upsert_attachment(tenant.id, "post", uuid4(), {"headline": "Nope"})

    with pytest.raises(ValidationError):
        db(scenario)


def test_delete_attachment_is_idempotent(db) -> None:
    async def scenario(session: AsyncSession) -> List[bool]:
        tenant = await make_tenant(session)
        entity_id = uuid4()
        seo = AttachmentResolver(session)
        await seo.upsert_attachment(tenant.id, "page", entity_id, {"robots": "noindex"})
        return [
            await seo.delete_attachment(tenant.id, "page", entity_id),
            await seo.delete_attachment(tenant.id, "page", entity_id),
        ]

    assert db(scenario) == [True, False]


def test_effective_seo_falls_back() -> None:
    row = SeoMetadata(og_title="OG title", meta_description="Meta description", og_image="https://cdn/x.jpg")
    values = effective_seo(row)
    assert values["title"] == "OG title"
    assert values["twitter_title"] == "OG title"
    assert values["twitter_description"] == "Meta description"
    assert values["twitter_image"] == "https://cdn/x.jpg"
    assert values["robots"] == "index, follow"


async def _field_keys(session: AsyncSession, *names: str) -> List[Any]:
    category = await TaxonomyService(session).create_category("custom_fields")
    values = ValueService(session)
    return [await values.create_value(category.id, name) for name in names]


def test_custom_fields_set_replace_remove(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, Any]:
        tenant = await make_tenant(session)
        rera, possession, area = await _field_keys(session, "RERA Number", "Possession Date", "Land Area")
        fields = CustomFieldService(session)
        entity_id = uuid4()
        await fields.set_field(tenant.id, "property", entity_id, rera.id, "P0240001")
        await fields.set_field(tenant.id, "property", entity_id, rera.id, "P0240002")
        after_set = [f.field_value for f in await fields.list_fields(tenant.id, "property", entity_id)]

        replaced = await fields.replace_fields(
            tenant.id, "property", entity_id, {possession.id: "2027-03", area.id: "12 acres"}
        )
        after_replace = [(f.field_key_id == possession.id, f.field_value) for f in replaced]

        removed = await fields.remove_field(tenant.id, "property", entity_id, area.id)
        remaining = [f.field_value for f in await fields.list_fields(tenant.id, "property", entity_id)]
        return {"set": after_set, "replace": after_replace, "removed": removed, "remaining": remaining}

    assert db(scenario) == {
        "set": ["P0240002"],
        "replace": [(True, "2027-03"), (False, "12 acres")],
        "removed": True,
        "remaining": ["2027-03"],
    }


def test_custom_field_key_must_be_custom_field_value(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        tenant = await make_tenant(session)
        amenities = await TaxonomyService(session).create_category("amenities")
        parking = await ValueService(session).create_value(amenities.id, "Parking")
        await CustomFieldService(session).set_field(tenant.id, "property", uuid4(), parking.id, "yes")

    with pytest.raises(ValidationError):
        db(scenario)


def test_custom_field_key_must_exist(db) -> None:
    async def scenario(session: AsyncSession) -> None:
        tenant = await make_tenant(session)
        await CustomFieldService(session).set_field(tenant.id, "property", uuid4(), uuid4(), "yes")

    with pytest.raises(NotFoundError):
        db(scenario)


def test_custom_field_of_another_tenant_is_not_overwritten(db) -> None:
    async def scenario(session: AsyncSession) -> List[str]:
        acme = await make_tenant(session, "acme")
        globex = await make_tenant(session, "globex")
        (rera,) = await _field_keys(session, "RERA Number")
        fields = CustomFieldService(session)
        entity_id = uuid4()
        await fields.set_field(acme.id, "property", entity_id, rera.id, "P0240001")
        with pytest.raises(ConflictError):
            await fields.set_field(globex.id, "property", entity_id, rera.id, "HIJACKED")
        with pytest.raises(ConflictError):
            await fields.set_field(acme.id, "post", entity_id, rera.id, "HIJACKED")
        return [f.field_value for f in await fields.list_fields(acme.id, "property", entity_id)]

    assert db(scenario) == ["P0240001"]


def test_deleting_entity_purges_its_attachments(db) -> None:
    async def scenario(session: AsyncSession) -> List[Any]:
        tenant = await make_tenant(session)
        (rera,) = await _field_keys(session, "RERA Number")
        posts = EntityService(session, "blog_post")
        post = await posts.create(tenant.id, "Top 10 Localities")
        seo = AttachmentResolver(session)
        fields = CustomFieldService(session)
        await seo.upsert_attachment(tenant.id, "post", post.id, {"meta_title": "Top 10"})
        await fields.set_field(tenant.id, "post", post.id, rera.id, "n/a")

        await posts.delete(post.id)
        return [
            await seo.get_attachment(tenant.id, "post", post.id),
            await fields.list_fields(tenant.id, "post", post.id),
        ]

    assert db(scenario) == [None, []]


def test_deleting_content_category_purges_descendant_attachments(db) -> None:
    async def scenario(session: AsyncSession) -> List[Any]:
        tenant = await make_tenant(session)
        categories = EntityService(session, "content_category")
        guides = await categories.create(tenant.id, "Guides")
        buying = await categories.create(tenant.id, "Buying", parent_id=guides.id)
        seo = AttachmentResolver(session)
        await seo.upsert_attachment(tenant.id, "category", buying.id, {"meta_title": "Buying guides"})

        await categories.delete(guides.id)
        return [await seo.get_attachment(tenant.id, "category", buying.id)]

    assert db(scenario) == [None]


def test_create_property_writes_links_and_attachments_together(db) -> None:
    async def scenario(session: AsyncSession) -> Dict[str, Any]:
        tenant = await make_tenant(session)
        taxonomy = TaxonomyService(session)
        values = ValueService(session)
        amenities = await taxonomy.create_category("amenities")
        pool = await values.create_value(amenities.id, "Pool")
        (rera,) = await _field_keys(session, "RERA Number")

        prop = await PropertyService(session).create_property(
            tenant.id,
            "Skyline Towers",
            amenity_ids=[pool.id],
            seo={"meta_title": "Skyline Towers, Kokapet"},
            custom_fields={rera.id: "P02400001"},
            description="Lake-facing towers",
        )
        seo = await AttachmentResolver(session).get_attachment(tenant.id, "property", prop.id)
        fields = await CustomFieldService(session).list_fields(tenant.id, "property", prop.id)
        links = await AssociationGraph(session, "property-amenities").list_right(prop.id)
        return {
            "slug": prop.slug,
            "seo": seo.meta_title,
            "fields": [f.field_value for f in fields],
            "amenities": [link.amenity_id == pool.id for link in links],
        }

    assert db(scenario) == {
        "slug": "skyline-towers",
        "seo": "Skyline Towers, Kokapet",
        "fields": ["P02400001"],
        "amenities": [True],
    }


def test_create_property_leaves_nothing_behind_on_failure(db) -> None:
    async def scenario(session: AsyncSession) -> List[Any]:
        tenant = await make_tenant(session)
        with pytest.raises(NotFoundError):
            await PropertyService(session).create_property(
                tenant.id, "Skyline Towers", amenity_ids=[uuid4()], seo={"meta_title": "Skyline"}
            )
        return [p.slug for p in await EntityService(session, "property").repo.list_for_tenant(tenant.id)]

    assert db(scenario) == []
