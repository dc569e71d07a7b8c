"""
Tests for the category service.

Covers:
- Ownership scoping on every read and write
- Full and partial updates
- Validation before any write
"""

from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from finance_service.domain.entities import Category, CategoryPatch
from finance_service.domain.exceptions import (
    AlreadyExistsException,
    EntityNotFoundException,
    EntityValidationException,
    InvalidArgumentException,
)
from finance_service.services.category_service import CategoryService


@pytest.fixture
def service(category_repository):
    return CategoryService(category_repository)


class TestCreate:
    """Test category creation."""

    @pytest.mark.asyncio
    async def test_create_assigns_id(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        assert created.id
        assert created.name == "Comida"
        assert created.owner_id == "u1"

    @pytest.mark.asyncio
    async def test_stored_category_equals_input(self, service):
        category = Category(name="Salario", kind="Ingreso", owner_id="u1")
        created = await service.create(category)

        assert await service.get_by_id(created.id, "u1") == replace(category, id=created.id)

    @pytest.mark.asyncio
    async def test_create_discards_supplied_id(self, service):
        created = await service.create(
            Category(id="chosen", name="Comida", kind="Gasto", owner_id="u1")
        )
        assert created.id != "chosen"
        assert ObjectId.is_valid(created.id)

    @pytest.mark.asyncio
    async def test_invalid_category_never_reaches_store(self):
        repository = MagicMock()
        repository.add = AsyncMock()
        service = CategoryService(repository)

        with pytest.raises(EntityValidationException) as exc_info:
            await service.create(Category(name="", kind="Gasto", owner_id="u1"))

        assert "name" in exc_info.value.errors
        repository.add.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_name_for_same_owner(self, service):
        await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        with pytest.raises(AlreadyExistsException):
            await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        # Same name is fine for another user.
        await service.create(Category(name="Comida", kind="Gasto", owner_id="u2"))

    def test_repository_required(self):
        with pytest.raises(InvalidArgumentException):
            CategoryService(None)


class TestOwnership:
    """Records of other users behave as missing."""

    @pytest.mark.asyncio
    async def test_scoped_reads(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        assert (await service.get_by_id(created.id, "u1")).name == "Comida"
        assert await service.get_by_id(created.id, "u2") is None
        assert [c.id for c in await service.get_all("u1")] == [created.id]
        assert await service.get_all("u2") == []
        assert await service.get_by_user("u1") == await service.get_all("u1")

    @pytest.mark.asyncio
    async def test_update_by_other_user_is_not_found(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        with pytest.raises(EntityNotFoundException):
            await service.update(
                created.id, Category(name="Hack", kind="Gasto", owner_id="u2"), "u2"
            )

        assert (await service.get_by_id(created.id, "u1")).name == "Comida"

    @pytest.mark.asyncio
    async def test_delete_by_other_user_is_not_found(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        with pytest.raises(EntityNotFoundException):
            await service.delete(created.id, "u2")

        await service.delete(created.id, "u1")
        assert await service.get_by_id(created.id, "u1") is None

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        with pytest.raises(EntityNotFoundException):
            await service.delete(str(ObjectId()), "u1")

    @pytest.mark.asyncio
    async def test_user_required(self, service):
        with pytest.raises(InvalidArgumentException):
            await service.get_all("")
        with pytest.raises(InvalidArgumentException):
            await service.get_by_id("abc", None)


class TestUpdate:
    """Test full replacement."""

    @pytest.mark.asyncio
    async def test_update_replaces_fields(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        updated = await service.update(
            created.id, Category(name="Sueldo", kind="Ingreso", owner_id="u1"), "u1"
        )

        assert updated.id == created.id
        stored = await service.get_by_id(created.id, "u1")
        assert (stored.name, stored.kind) == ("Sueldo", "Ingreso")

    @pytest.mark.asyncio
    async def test_owner_in_payload_is_ignored(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        updated = await service.update(
            created.id, Category(name="Comida 2", kind="Gasto", owner_id="u2"), "u1"
        )

        assert updated.owner_id == "u1"
        assert await service.get_all("u2") == []

    @pytest.mark.asyncio
    async def test_invalid_update_rejected(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        with pytest.raises(EntityValidationException):
            await service.update(
                created.id, Category(name="Comida", kind="Otro", owner_id="u1"), "u1"
            )


class TestPartialUpdate:
    """Test merges of supplied fields only."""

    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        patched = await service.update_partial(
            created.id, CategoryPatch(name="Supermercado"), "u1"
        )

        assert patched.name == "Supermercado"
        assert patched.kind == "Gasto"
        assert patched.owner_id == "u1"

    @pytest.mark.asyncio
    async def test_patch_is_idempotent(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))
        patch = CategoryPatch.model_validate({"name": "Super"})

        first = await service.update_partial(created.id, patch, "u1")
        second = await service.update_partial(created.id, patch, "u1")

        assert first == second

    @pytest.mark.asyncio
    async def test_explicit_empty_name_rejected(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        with pytest.raises(EntityValidationException) as exc_info:
            await service.update_partial(created.id, CategoryPatch(name=""), "u1")

        assert "name" in exc_info.value.errors
        assert (await service.get_by_id(created.id, "u1")).name == "Comida"

    @pytest.mark.asyncio
    async def test_owner_cannot_be_patched(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))
        patch = CategoryPatch.model_validate({"owner_id": "u2", "kind": "Ingreso"})

        patched = await service.update_partial(created.id, patch, "u1")

        assert patched.owner_id == "u1"
        assert patched.kind == "Ingreso"

    @pytest.mark.asyncio
    async def test_missing_or_foreign_returns_none(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))

        assert await service.update_partial(created.id, CategoryPatch(name="X"), "u2") is None
        assert await service.update_partial("nope", CategoryPatch(name="X"), "u1") is None

    @pytest.mark.asyncio
    async def test_empty_patch_keeps_record(self, service):
        created = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))
        patched = await service.update_partial(created.id, CategoryPatch(), "u1")
        assert patched == created


class TestScenario:
    """Two users sharing one store."""

    @pytest.mark.asyncio
    async def test_two_users_are_isolated(self, service):
        comida = await service.create(Category(name="Comida", kind="Gasto", owner_id="u1"))
        await service.create(Category(name="Comida", kind="Gasto", owner_id="u2"))

        assert len(await service.get_all("u1")) == 1
        assert await service.get_by_id(comida.id, "u2") is None

        await service.update_partial(comida.id, CategoryPatch(name="Alimentos"), "u1")
        theirs = await service.get_all("u2")
        assert [c.name for c in theirs] == ["Comida"]
