"""
Category service.

Every operation is scoped to the calling user: a category owned by
someone else behaves exactly like one that does not exist.
"""

from dataclasses import replace
from typing import List, Optional

from ..domain.entities import Category, CategoryPatch
from ..domain.exceptions import EntityNotFoundException, InvalidArgumentException
from ..logging_config import get_logger
from ..repositories.base import IRepository
from ..repositories.identifiers import owned_filter
from ..validators import CategoryValidator, ensure_valid

logger = get_logger(__name__)

ENTITY = "Category"


def _require(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentException(name)
    return value


class CategoryService:
    """Validation, ownership scoping and partial merges for categories."""

    def __init__(
        self,
        repository: IRepository[Category],
        validator: Optional[CategoryValidator] = None,
    ):
        if repository is None:
            raise InvalidArgumentException("repository")
        self.repository = repository
        self.validator = validator or CategoryValidator()

    async def get_all(self, user_id: str) -> List[Category]:
        """All categories owned by the user."""
        _require(user_id, "user_id")
        return await self.repository.find({"owner_id": user_id})

    async def get_by_user(self, user_id: str) -> List[Category]:
        return await self.get_all(user_id)

    async def get_by_id(self, category_id: str, user_id: str) -> Optional[Category]:
        """Return the category if the user owns it, else None."""
        return await self.repository.first_or_default(owned_filter(category_id, user_id))

    async def create(self, category: Category) -> Category:
        """
        Validate and insert a category.

        Any identifier on the input is discarded; the store assigns one.
        """
        if category is None:
            raise InvalidArgumentException("category")
        ensure_valid(self.validator, category, ENTITY)

        created = await self.repository.add(replace(category, id=None))
        logger.info("Category created", category_id=created.id, owner_id=created.owner_id)
        return created

    async def update(self, category_id: str, category: Category, user_id: str) -> Category:
        """
        Fully replace a category the user owns.

        The owner always stays ``user_id`` whatever the payload says.

        Raises:
            EntityValidationException: If the payload is invalid
            EntityNotFoundException: If the user owns no such category
        """
        _require(category_id, "id")
        _require(user_id, "user_id")
        if category is None:
            raise InvalidArgumentException("category")

        candidate = replace(category, owner_id=user_id)
        ensure_valid(self.validator, candidate, ENTITY)

        existing = await self.get_by_id(category_id, user_id)
        if existing is None:
            raise EntityNotFoundException(ENTITY, category_id)

        updated = await self.repository.update(replace(candidate, id=existing.id))
        logger.info("Category updated", category_id=updated.id, owner_id=user_id)
        return updated

    async def update_partial(
        self, category_id: str, patch: CategoryPatch, user_id: str
    ) -> Optional[Category]:
        """
        Overwrite only the supplied fields of a category the user owns.

        Returns:
            The merged category, or None when the user owns no such category

        Raises:
            EntityValidationException: If the merged category is invalid
        """
        _require(category_id, "id")
        _require(user_id, "user_id")
        if patch is None:
            raise InvalidArgumentException("patch")

        existing = await self.get_by_id(category_id, user_id)
        if existing is None:
            return None

        merged = patch.apply_to(existing)
        ensure_valid(self.validator, merged, ENTITY)

        updated = await self.repository.update(merged)
        logger.info(
            "Category patched",
            category_id=updated.id,
            owner_id=user_id,
            fields=sorted(patch.supplied()),
        )
        return updated

    async def delete(self, category_id: str, user_id: str) -> None:
        """
        Delete a category the user owns.

        Raises:
            EntityNotFoundException: If the user owns no such category, or
                it vanished before the delete
        """
        existing = await self.get_by_id(category_id, user_id)
        if existing is None:
            raise EntityNotFoundException(ENTITY, category_id)

        if not await self.repository.delete(existing.id):
            raise EntityNotFoundException(ENTITY, category_id)
        logger.info("Category deleted", category_id=category_id, owner_id=user_id)
