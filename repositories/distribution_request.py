from datetime import datetime

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from db import session_execute, session_flush, session_refresh
from enums.distribution_request_status import DistributionRequestStatus
from models.distribution_request import DistributionRequest, DistributionRequestDTO


class DistributionRequestRepository:
    """Repository for distributor applications."""

    @staticmethod
    async def create(request_dto: DistributionRequestDTO, session: AsyncSession) -> DistributionRequestDTO:
        request = DistributionRequest(**request_dto.model_dump(exclude={'id', 'created_at', 'responded_at'}))
        session.add(request)
        await session_flush(session)
        await session_refresh(session, request)
        return DistributionRequestDTO.model_validate(request, from_attributes=True)

    @staticmethod
    async def get_by_unique_id(unique_id: str, session: AsyncSession) -> DistributionRequestDTO | None:
        stmt = select(DistributionRequest).where(
            DistributionRequest.unique_id == unique_id
        ).execution_options(populate_existing=True)
        request = await session_execute(stmt, session)
        request = request.scalar()
        if request is not None:
            return DistributionRequestDTO.model_validate(request, from_attributes=True)
        else:
            return None

    @staticmethod
    async def transition_from_pending(
        unique_id: str,
        new_status: DistributionRequestStatus,
        responded_at: datetime,
        session: AsyncSession
    ) -> bool:
        """
        Move a pending request to a terminal status.

        The WHERE clause on status makes this a compare-and-set: of two
        concurrent clicks only one matches a row.

        Returns:
            True if this call performed the transition, False if the request
            was not pending anymore (or does not exist).
        """
        stmt = update(DistributionRequest).where(
            DistributionRequest.unique_id == unique_id,
            DistributionRequest.status == DistributionRequestStatus.PENDING
        ).values(
            status=new_status,
            responded_at=responded_at
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def count(session: AsyncSession) -> int:
        result = await session_execute(select(func.count(DistributionRequest.id)), session)
        return result.scalar_one()

    @staticmethod
    async def delete_all(session: AsyncSession) -> int:
        result = await session_execute(delete(DistributionRequest), session)
        return result.rowcount
