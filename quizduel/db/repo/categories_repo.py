from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.categories import Category


class CategoriesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, category: Category) -> Category:
        session.add(category)
        await session.flush()
        return category

    @staticmethod
    async def get_by_id(session: AsyncSession, category_id: int) -> Category | None:
        return await session.get(Category, category_id)
