"""
Tests for service wiring and bearer token resolution.

Includes an end-to-end flow over the in-memory store: register,
activate, log in, then manage categories and transactions as the
token's subject.
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest

from finance_service.dependencies import (
    ServiceContainer,
    build_container,
    get_current_user_id,
    get_token_from_header,
)
from finance_service.domain.entities import Category, CategoryPatch, Transaction
from finance_service.domain.exceptions import ConfigurationException, UnauthorizedException
from finance_service.domain.results import Outcome, capture
from finance_service.repositories.unit_of_work import UnitOfWork


@pytest.fixture
def container(mongo_context, test_settings):
    return ServiceContainer.from_context(mongo_context, test_settings)


class TestAuthorizationHeader:
    """Test bearer token extraction."""

    def test_extracts_token(self):
        assert get_token_from_header("Bearer abc.def.ghi") == "abc.def.ghi"
        assert get_token_from_header("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "abc", "Basic abc", "Bearer a b"])
    def test_malformed_header(self, header):
        with pytest.raises(UnauthorizedException):
            get_token_from_header(header)


class TestServiceContainer:
    """Test wiring."""

    def test_missing_signing_key_stops_startup(self, mongo_context, test_settings):
        config = test_settings.model_copy(update={"JWT_SECRET_KEY": ""})
        with pytest.raises(ConfigurationException):
            ServiceContainer.from_context(mongo_context, config)

    def test_services_share_collections(self, container, mongo_context):
        assert container.categories.repository.collection is mongo_context.categories
        assert container.transactions.category_repository.collection is mongo_context.categories
        assert container.users.credentials is container.credentials

    def test_unit_of_work(self, container, mongo_context):
        uow = container.unit_of_work()
        assert isinstance(uow, UnitOfWork)
        assert uow.context is mongo_context

    @pytest.mark.asyncio
    async def test_build_container_creates_indexes_when_enabled(self, test_settings):
        config = test_settings.model_copy(update={"MONGODB_CREATE_INDEXES": True})

        with patch("finance_service.dependencies.MongoContext") as context_cls, patch(
            "finance_service.dependencies.create_indexes"
        ) as create:
            await build_container(config)

        create.assert_awaited_once_with(context_cls.return_value)

    @pytest.mark.asyncio
    async def test_build_container_skips_indexes_when_disabled(self, test_settings):
        with patch("finance_service.dependencies.MongoContext"), patch(
            "finance_service.dependencies.create_indexes"
        ) as create:
            container = await build_container(test_settings)

        create.assert_not_awaited()
        assert container.credentials.config is test_settings


class TestEndToEnd:
    """A user's full session against the in-memory store."""

    @pytest.mark.asyncio
    async def test_register_login_and_track_spending(self, container, fixed_now):
        registered = await container.users.register("Ana_01", "Secret123")

        denied = await capture(container.users.login("ana_01", "Secret123"))
        assert denied.outcome is Outcome.UNAUTHORIZED

        await container.users.set_active("ana_01")
        token = (await capture(container.users.login("ana_01", "Secret123"))).unwrap()
        user_id = get_current_user_id(f"Bearer {token}", container.credentials)
        assert user_id == registered.id

        category = await container.categories.create(
            Category(name="Comida", kind="Gasto", owner_id=user_id)
        )
        spent = await container.transactions.create(
            Transaction(
                kind="Gasto",
                amount=Decimal("42.10"),
                category_id=category.id,
                owner_id=user_id,
                occurred_at=fixed_now - timedelta(hours=2),
            )
        )

        renamed = await container.categories.update_partial(
            category.id, CategoryPatch(name="Alimentos"), user_id
        )
        assert renamed.kind == "Gasto"

        page = await container.transactions.get_page(user_id)
        assert [t.id for t in page] == [spent.id]

        stranger = await capture(container.categories.get_by_id(category.id, "someone-else"))
        assert stranger.outcome is Outcome.NOT_FOUND

        deleted = await capture(
            container.transactions.delete(spent.id, user_id), success=Outcome.NO_CONTENT
        )
        assert deleted.status_code == 204
        assert await container.transactions.get_all(user_id) == []

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self, container):
        with pytest.raises(UnauthorizedException):
            get_current_user_id("Bearer not.a.token", container.credentials)
