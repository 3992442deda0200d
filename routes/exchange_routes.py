import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pymongo import DESCENDING, ReturnDocument

from dependencies import get_current_user_id, get_db
from errors import (
    BookNotAvailable,
    CannotRequestOwnBook,
    Forbidden,
    InvalidExchangeId,
    InvalidObjectId,
    InvalidTransition,
    NotFound,
    ValidationError,
    server_error,
)
from models.book_models import BookStatus
from models.exchange_models import (
    ExchangeMessage,
    ExchangeRequest,
    ExchangeStatus,
    ExchangeStatusUpdate,
)
from serializers import populate_transactions
from services.exchange_state import (
    apply_transition,
    book_status_after,
    role_of,
    status_message,
)
from utils import to_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def new_message(sender, content: str, notified: bool = False) -> dict:
    return {
        "sender": sender,
        "content": content,
        "created_at": datetime.utcnow(),
        "read": False,
        "notified": notified,
    }


def _exchange_oid(exchange_id: str):
    oid = to_object_id(exchange_id)
    if oid is None:
        raise InvalidExchangeId()
    return oid


async def _populated(db, transaction: dict) -> dict:
    populated = await populate_transactions(db, [transaction])
    return populated[0]


async def _list(db, query: dict, sort_field: str) -> list:
    cursor = db.transactions.find(query, sort=[(sort_field, DESCENDING)])
    transactions = [t async for t in cursor]
    return await populate_transactions(db, transactions)


@router.post("/request", status_code=201)
async def create_exchange_request(
    exchange: ExchangeRequest,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        book_oid = to_object_id(exchange.bookId)
        if book_oid is None:
            raise InvalidObjectId("Invalid book ID")
        requester_oid = to_object_id(user_id)

        book = await db.books.find_one({"_id": book_oid})
        if not book:
            raise NotFound("Book not found")
        if book.get("status") != BookStatus.AVAILABLE.value:
            raise BookNotAvailable()
        if str(book["owner"]) == user_id:
            raise CannotRequestOwnBook()

        # claim the book in one conditional write
        claimed = await db.books.find_one_and_update(
            {"_id": book_oid, "status": BookStatus.AVAILABLE.value},
            {"$set": {"status": BookStatus.PENDING.value}},
        )
        if claimed is None:
            raise BookNotAvailable()

        now = datetime.utcnow()
        transaction = {
            "book": book_oid,
            "requester": requester_oid,
            "owner": book["owner"],
            "status": ExchangeStatus.PENDING.value,
            "terms": exchange.terms.to_document(),
            "messages": [],
            "last_modified_by": requester_oid,
            "created_at": now,
            "updated_at": now,
        }
        if exchange.message and exchange.message.strip():
            transaction["messages"].append(new_message(requester_oid, exchange.message.strip()))

        try:
            result = await db.transactions.insert_one(transaction)
        except Exception:
            await db.books.update_one(
                {"_id": book_oid, "status": BookStatus.PENDING.value},
                {"$set": {"status": BookStatus.AVAILABLE.value}},
            )
            raise
        transaction["_id"] = result.inserted_id

        logger.info("Exchange request %s created for book %s by %s", result.inserted_id, book_oid, user_id)
        return {"data": await _populated(db, transaction)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Create exchange request error")
        raise server_error("Failed to create exchange request")


@router.patch("/{exchange_id}/status")
async def update_exchange_status(
    exchange_id: str,
    update: ExchangeStatusUpdate,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        exchange_oid = _exchange_oid(exchange_id)
        transaction = await db.transactions.find_one({"_id": exchange_oid})
        if not transaction:
            raise NotFound("Exchange request not found")

        current = ExchangeStatus(transaction["status"])
        new_status = apply_transition(current, role_of(transaction, user_id), update.status)

        user_oid = to_object_id(user_id)
        changes = {
            "$set": {
                "status": new_status.value,
                "last_modified_by": user_oid,
                "updated_at": datetime.utcnow(),
            }
        }
        content = status_message(new_status, update.message)
        if content:
            changes["$push"] = {"messages": new_message(user_oid, content)}

        # only applies if nobody moved the status since it was read
        updated = await db.transactions.find_one_and_update(
            {"_id": exchange_oid, "status": current.value},
            changes,
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise InvalidTransition("Exchange request was updated by someone else, please reload")

        book_status = book_status_after(new_status)
        if book_status is not None:
            # no-op when the book has been deleted meanwhile
            await db.books.update_one(
                {"_id": updated["book"]},
                {"$set": {"status": book_status.value}},
            )

        logger.info(
            "Exchange %s moved %s -> %s by %s",
            exchange_id, current.value, new_status.value, user_id,
        )
        return {
            "message": "Exchange status updated successfully",
            "data": await _populated(db, updated),
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Update exchange status error")
        raise server_error("Failed to update exchange status")


@router.post("/{exchange_id}/messages")
async def add_message(
    exchange_id: str,
    payload: ExchangeMessage,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        exchange_oid = _exchange_oid(exchange_id)
        transaction = await db.transactions.find_one({"_id": exchange_oid})
        if not transaction:
            raise NotFound("Exchange request not found")
        if role_of(transaction, user_id) is None:
            raise Forbidden("Not authorized to message in this exchange")

        content = payload.message.strip()
        if not content:
            raise ValidationError("Message cannot be empty")

        updated = await db.transactions.find_one_and_update(
            {"_id": exchange_oid},
            {
                "$push": {"messages": new_message(to_object_id(user_id), content, notified=True)},
                "$set": {"updated_at": datetime.utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFound("Exchange request not found after update")

        return {"message": "Message sent successfully", "data": await _populated(db, updated)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Add message error")
        raise server_error("Failed to send message")


@router.get("/sent")
async def get_sent_requests(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        return {"data": await _list(db, {"requester": to_object_id(user_id)}, "created_at")}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get sent requests error")
        raise server_error("Failed to fetch sent requests")


@router.get("/received")
async def get_received_requests(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        return {"data": await _list(db, {"owner": to_object_id(user_id)}, "created_at")}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get received requests error")
        raise server_error("Failed to fetch received requests")


@router.get("/user")
async def get_user_exchanges(
    status: Optional[ExchangeStatus] = None,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        user_oid = to_object_id(user_id)
        query = {"$or": [{"requester": user_oid}, {"owner": user_oid}]}
        if status:
            query["status"] = status.value
        return {"data": await _list(db, query, "updated_at")}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get user exchanges error")
        raise server_error("Failed to fetch exchange requests")


@router.get("/notifications/unread")
async def get_unread_count(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        user_oid = to_object_id(user_id)
        unread_count = await db.transactions.count_documents({
            "$or": [{"requester": user_oid}, {"owner": user_oid}],
            "messages": {"$elemMatch": {"sender": {"$ne": user_oid}, "read": False}},
        })
        return {"data": {"unreadCount": unread_count}}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get unread count error")
        raise server_error("Failed to fetch unread count")


@router.get("/{exchange_id}")
async def get_exchange_details(
    exchange_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        exchange_oid = _exchange_oid(exchange_id)
        transaction = await db.transactions.find_one({"_id": exchange_oid})
        if not transaction:
            raise NotFound("Exchange request not found")
        if role_of(transaction, user_id) is None:
            raise Forbidden("Not authorized to view this exchange")

        # reading the thread is the read receipt for the other party's messages
        unread = {
            f"messages.{index}.read": True
            for index, message in enumerate(transaction.get("messages", []))
            if str(message["sender"]) != user_id and not message.get("read", False)
        }
        if unread:
            transaction = await db.transactions.find_one_and_update(
                {"_id": exchange_oid},
                {"$set": unread},
                return_document=ReturnDocument.AFTER,
            )

        return {"data": await _populated(db, transaction)}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Get exchange details error")
        raise server_error("Failed to fetch exchange details")
