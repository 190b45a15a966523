from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush
from models.distributor import Distributor, DistributorDTO


class DistributorRepository:
    """Repository for approved distributors."""

    @staticmethod
    async def create(distributor_dto: DistributorDTO, session: AsyncSession) -> int:
        distributor = Distributor(**distributor_dto.model_dump(exclude={'id', 'created_at'}))
        session.add(distributor)
        await session_flush(session)
        return distributor.id

    @staticmethod
    async def get_active(session: AsyncSession) -> list[DistributorDTO]:
        stmt = select(Distributor).where(
            Distributor.is_active == True
        ).order_by(Distributor.business_name.asc())
        distributors = await session_execute(stmt, session)
        return [DistributorDTO.model_validate(distributor, from_attributes=True)
                for distributor in distributors.scalars().all()]

    @staticmethod
    async def get_by_distribution_request_id(request_id: int, session: AsyncSession) -> DistributorDTO | None:
        stmt = select(Distributor).where(Distributor.distribution_request_id == request_id)
        distributor = await session_execute(stmt, session)
        distributor = distributor.scalar()
        if distributor is not None:
            return DistributorDTO.model_validate(distributor, from_attributes=True)
        else:
            return None

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session_execute(select(func.count(Distributor.id)), session)
        return result.scalar_one()

    @staticmethod
    async def delete_all(session: AsyncSession) -> int:
        result = await session_execute(delete(Distributor), session)
        return result.rowcount
