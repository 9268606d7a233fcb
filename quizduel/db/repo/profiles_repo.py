from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quizduel.db.models.profiles import Profile


class ProfilesRepo:
    @staticmethod
    async def create(session: AsyncSession, *, profile: Profile) -> Profile:
        session.add(profile)
        await session.flush()
        return profile

    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: int) -> Profile | None:
        return await session.get(Profile, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: int) -> Profile | None:
        stmt = (
            select(Profile)
            .where(Profile.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_referral_code(session: AsyncSession, referral_code: str) -> Profile | None:
        stmt = select(Profile).where(Profile.referral_code == referral_code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def referral_code_exists(session: AsyncSession, referral_code: str) -> bool:
        stmt = select(Profile.id).where(Profile.referral_code == referral_code).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def add_points(session: AsyncSession, *, user_id: int, amount: int) -> int:
        stmt = (
            update(Profile)
            .where(Profile.id == user_id)
            .values(points=Profile.points + int(amount))
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def add_correct_answers(session: AsyncSession, *, user_id: int, amount: int) -> int:
        stmt = (
            update(Profile)
            .where(Profile.id == user_id)
            .values(correct_answers_total=Profile.correct_answers_total + int(amount))
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def set_referred_by(
        session: AsyncSession,
        *,
        user_id: int,
        referred_by_user_id: int,
    ) -> int:
        stmt = (
            update(Profile)
            .where(Profile.id == user_id, Profile.referred_by_user_id.is_(None))
            .values(referred_by_user_id=referred_by_user_id)
        )
        result = await session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    async def list_top_by_points(session: AsyncSession, *, limit: int) -> list[Profile]:
        stmt = (
            select(Profile)
            .order_by(Profile.points.desc(), Profile.id.asc())
            .limit(max(1, int(limit)))
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
