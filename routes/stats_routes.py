import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_current_user_id, get_db
from errors import NotFound, server_error
from models.exchange_models import ExchangeStatus
from models.stats_models import UserStats
from utils import to_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["statistics"])


@router.get("/stats")
async def get_user_stats(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        user_oid = to_object_id(user_id)
        involved = {"$or": [{"requester": user_oid}, {"owner": user_oid}]}

        total_books, active_exchanges, completed_exchanges, user = await asyncio.gather(
            db.books.count_documents({"owner": user_oid}),
            db.transactions.count_documents({
                **involved,
                "status": {"$in": [ExchangeStatus.PENDING.value, ExchangeStatus.ACCEPTED.value]},
            }),
            db.transactions.count_documents({**involved, "status": ExchangeStatus.COMPLETED.value}),
            db.users.find_one({"_id": user_oid}, {"reputation": 1}),
        )
        if not user:
            raise NotFound("User not found")

        stats = UserStats(
            totalBooks=total_books,
            activeExchanges=active_exchanges,
            completedExchanges=completed_exchanges,
            reputation=user.get("reputation") or 0,
        )
        return {"data": stats.dict()}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error fetching user stats")
        raise server_error("Failed to fetch user statistics")
