"""
Maintenance endpoints, all gated by X-Admin-Token.

Destructive operations (reset, init-database, clean-distributors) log at
WARNING so they stand out in the retained logs.
"""

import logging

from fastapi import APIRouter, Depends

from db import get_db_session, create_db_and_tables
from models.order import SendCompletionEmailsRequest
from repositories.order import OrderRepository
from services.distribution import DistributionService
from services.order import OrderService
from web.dependencies import generate_correlation_id, get_order_repository, require_admin_token

logger = logging.getLogger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin_token)])


@admin_router.get("/cleanup-orders")
async def analyze_duplicate_orders(repository: OrderRepository = Depends(get_order_repository)):
    """Dry run: report duplicate rows per checkout session without deleting anything."""
    report = await OrderService.analyze_duplicate_orders(repository)
    return {"success": True, **report.model_dump()}


@admin_router.post("/cleanup-orders")
async def cleanup_duplicate_orders(repository: OrderRepository = Depends(get_order_repository)):
    correlation_id = generate_correlation_id()
    logger.warning(f"[{correlation_id}] Duplicate order cleanup started")
    report = await OrderService.cleanup_duplicate_orders(repository)
    logger.warning(f"[{correlation_id}] Cleanup finished: {report.orders_deleted} row(s) deleted "
                   f"across {report.sessions_cleaned} session(s)")
    return {
        "success": True,
        "message": f"Cleaned up {report.orders_deleted} duplicate order(s)",
        **report.model_dump(),
    }


@admin_router.post("/reset-orders")
async def reset_orders(repository: OrderRepository = Depends(get_order_repository)):
    deleted = await OrderService.reset_orders(repository)
    return {"success": True, "message": f"Deleted {deleted} order(s)", "orders_deleted": deleted}


@admin_router.post("/init-database")
async def init_database():
    logger.warning("Recreating all database tables")
    await create_db_and_tables(drop_existing=True)
    return {"success": True, "message": "Database initialized"}


@admin_router.post("/clean-distributors")
async def clean_distributors():
    async with get_db_session() as session:
        counts = await DistributionService.clean_distributors(session)
    return {"success": True, "message": "Distributors and distribution requests removed", **counts}


@admin_router.post("/send-completion-emails")
async def send_completion_emails(payload: SendCompletionEmailsRequest,
                                 repository: OrderRepository = Depends(get_order_repository)):
    """Re-send the customer confirmation and admin notification for a checkout session."""
    warnings = await OrderService.send_completion_emails_for_session(payload.stripe_session_id, repository)
    return {
        "success": not warnings,
        "message": "Completion emails sent" if not warnings else "Some completion emails failed",
        "warnings": warnings,
    }
