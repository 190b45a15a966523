import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Callable

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session, session_commit, session_execute, session_refresh
from enums.order_status import OrderStatus, PaymentStatus
from models.order import Order, OrderDTO, OrderCreateDTO

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class OrderRepository(ABC):
    """
    Order record store.

    Status is never set directly: it follows payment_status
    ("paid" -> confirmed, anything else -> pending).
    """

    @abstractmethod
    async def create_order(self, order_data: OrderCreateDTO) -> OrderDTO:
        ...

    @abstractmethod
    async def get_by_id(self, order_id: int) -> OrderDTO | None:
        ...

    @abstractmethod
    async def get_orders_by_user_id(self, user_id: str) -> list[OrderDTO]:
        ...

    @abstractmethod
    async def get_orders_by_stripe_session_id(self, stripe_session_id: str) -> list[OrderDTO]:
        ...

    @abstractmethod
    async def get_orders_by_payment_status(self, payment_status: str) -> list[OrderDTO]:
        ...

    @abstractmethod
    async def update_order_payment_status(self, order_id: int, payment_status: str) -> OrderDTO | None:
        ...

    @abstractmethod
    async def update_orders_payment_status_by_session(self, stripe_session_id: str,
                                                      payment_status: str) -> list[OrderDTO]:
        """
        Set payment_status (and the derived status) on every row of a checkout session.

        All rows change together or not at all. Rows already in the target
        state are left untouched, so repeating the call is a no-op.
        """
        ...

    @abstractmethod
    async def get_all_orders(self) -> list[OrderDTO]:
        ...

    @abstractmethod
    async def delete_orders(self, order_ids: list[int]) -> int:
        ...

    @abstractmethod
    async def delete_all_orders(self) -> int:
        ...


class InMemoryOrderRepository(OrderRepository):
    """
    Ephemeral order store for development and tests.

    Not shared between processes and lost on restart; never use it with
    more than one worker.
    """

    def __init__(self):
        self._orders: dict[int, OrderDTO] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create_order(self, order_data: OrderCreateDTO) -> OrderDTO:
        async with self._lock:
            now = datetime.now()
            order = OrderDTO(
                **order_data.model_dump(exclude={'payment_status'}),
                id=self._next_id,
                payment_status=order_data.payment_status or PaymentStatus.PENDING.value,
                status=OrderStatus.from_payment_status(order_data.payment_status),
                created_at=now,
                updated_at=now,
            )
            self._orders[order.id] = order
            self._next_id += 1
            return order.model_copy(deep=True)

    async def get_by_id(self, order_id: int) -> OrderDTO | None:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order is not None else None

    async def get_orders_by_user_id(self, user_id: str) -> list[OrderDTO]:
        return self._select(lambda order: order.user_id == user_id)

    async def get_orders_by_stripe_session_id(self, stripe_session_id: str) -> list[OrderDTO]:
        return self._select(lambda order: order.stripe_session_id == stripe_session_id)

    async def get_orders_by_payment_status(self, payment_status: str) -> list[OrderDTO]:
        return self._select(lambda order: order.payment_status == payment_status)

    async def update_order_payment_status(self, order_id: int, payment_status: str) -> OrderDTO | None:
        async with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                return None
            self._apply_payment_status(order, payment_status)
            return order.model_copy(deep=True)

    async def update_orders_payment_status_by_session(self, stripe_session_id: str,
                                                      payment_status: str) -> list[OrderDTO]:
        async with self._lock:
            for order in self._orders.values():
                if order.stripe_session_id == stripe_session_id:
                    self._apply_payment_status(order, payment_status)
            return self._select(lambda order: order.stripe_session_id == stripe_session_id)

    async def get_all_orders(self) -> list[OrderDTO]:
        return self._select(lambda order: True)

    async def delete_orders(self, order_ids: list[int]) -> int:
        async with self._lock:
            deleted = 0
            for order_id in order_ids:
                if self._orders.pop(order_id, None) is not None:
                    deleted += 1
            return deleted

    async def delete_all_orders(self) -> int:
        async with self._lock:
            deleted = len(self._orders)
            self._orders.clear()
            self._next_id = 1
            return deleted

    def _select(self, predicate) -> list[OrderDTO]:
        return [order.model_copy(deep=True)
                for order_id, order in sorted(self._orders.items())
                if predicate(order)]

    @staticmethod
    def _apply_payment_status(order: OrderDTO, payment_status: str) -> None:
        if order.payment_status == payment_status:
            return
        order.payment_status = payment_status
        order.status = OrderStatus.from_payment_status(payment_status)
        order.updated_at = datetime.now()


class SqlOrderRepository(OrderRepository):
    """Durable order store backed by the SQLAlchemy async engine."""

    def __init__(self, session_factory: SessionFactory | None = None):
        self._session_factory = session_factory or get_db_session

    async def create_order(self, order_data: OrderCreateDTO) -> OrderDTO:
        payment_status = order_data.payment_status or PaymentStatus.PENDING.value
        async with self._session_factory() as session:
            order = Order(
                **order_data.model_dump(exclude={'payment_status'}),
                payment_status=payment_status,
                status=OrderStatus.from_payment_status(payment_status),
            )
            session.add(order)
            await session_commit(session)
            await session_refresh(session, order)
            return OrderDTO.model_validate(order, from_attributes=True)

    async def get_by_id(self, order_id: int) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        async with self._session_factory() as session:
            order = await session_execute(stmt, session)
            order = order.scalar()
            if order is not None:
                return OrderDTO.model_validate(order, from_attributes=True)
            else:
                return None

    async def get_orders_by_user_id(self, user_id: str) -> list[OrderDTO]:
        return await self._select(select(Order).where(Order.user_id == user_id))

    async def get_orders_by_stripe_session_id(self, stripe_session_id: str) -> list[OrderDTO]:
        return await self._select(select(Order).where(Order.stripe_session_id == stripe_session_id))

    async def get_orders_by_payment_status(self, payment_status: str) -> list[OrderDTO]:
        return await self._select(select(Order).where(Order.payment_status == payment_status))

    async def update_order_payment_status(self, order_id: int, payment_status: str) -> OrderDTO | None:
        stmt = update(Order).where(
            Order.id == order_id,
            Order.payment_status != payment_status
        ).values(
            payment_status=payment_status,
            status=OrderStatus.from_payment_status(payment_status)
        )
        async with self._session_factory() as session:
            await session_execute(stmt, session)
            await session_commit(session)
        return await self.get_by_id(order_id)

    async def update_orders_payment_status_by_session(self, stripe_session_id: str,
                                                      payment_status: str) -> list[OrderDTO]:
        stmt = update(Order).where(
            Order.stripe_session_id == stripe_session_id,
            Order.payment_status != payment_status
        ).values(
            payment_status=payment_status,
            status=OrderStatus.from_payment_status(payment_status)
        )
        async with self._session_factory() as session:
            try:
                result = await session_execute(stmt, session)
                await session_commit(session)
            except Exception:
                await session.rollback()
                logger.error(f"Rolled back payment status update for session {stripe_session_id}")
                raise
            logger.info(f"Updated {result.rowcount} order row(s) of session {stripe_session_id} to '{payment_status}'")
        return await self.get_orders_by_stripe_session_id(stripe_session_id)

    async def get_all_orders(self) -> list[OrderDTO]:
        return await self._select(select(Order))

    async def delete_orders(self, order_ids: list[int]) -> int:
        if not order_ids:
            return 0
        stmt = delete(Order).where(Order.id.in_(order_ids))
        async with self._session_factory() as session:
            result = await session_execute(stmt, session)
            await session_commit(session)
            return result.rowcount

    async def delete_all_orders(self) -> int:
        async with self._session_factory() as session:
            result = await session_execute(delete(Order), session)
            await session_commit(session)
            return result.rowcount

    async def _select(self, stmt) -> list[OrderDTO]:
        async with self._session_factory() as session:
            orders = await session_execute(stmt.order_by(Order.id), session)
            return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]
