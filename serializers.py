from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId


def _id(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def serialize_user(user: dict) -> dict:
    """Public view of a user record; credentials never leave the database."""
    preferences = user.get("preferences") or {}
    return {
        "id": _id(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "bio": user.get("bio", ""),
        "location": user.get("location", ""),
        "profileImage": user.get("profile_image"),
        "preferences": {"genres": preferences.get("genres", [])},
        "reputation": user.get("reputation", 0),
        "createdAt": user.get("created_at"),
    }


def serialize_owner(owner: Optional[dict]) -> Optional[dict]:
    if not owner:
        return None
    preferences = owner.get("preferences") or {}
    return {
        "id": _id(owner["_id"]),
        "name": owner.get("name"),
        "email": owner.get("email"),
        "location": owner.get("location"),
        "preferences": {"genres": preferences.get("genres", [])},
    }


#get books serialization method
def serialize_book(book: dict, owner: Optional[dict] = None) -> dict:
    return {
        "id": _id(book["_id"]),
        "title": book.get("title"),
        "author": book.get("author"),
        "genre": book.get("genre", ""),
        "condition": book.get("condition"),
        "status": book.get("status", "available"),
        "description": book.get("description"),
        "location": book.get("location"),
        "owner": serialize_owner(owner) if owner else {"id": _id(book.get("owner"))},
        "createdAt": book.get("created_at"),
    }


def _party(user: Optional[dict], user_id: Any, with_email: bool = True) -> dict:
    party = {"id": _id(user_id), "name": user.get("name") if user else "Unknown User"}
    if with_email:
        party["email"] = user.get("email", "") if user else ""
    return party


def _book_summary(book: Optional[dict], book_id: Any) -> dict:
    if not book:
        return {"id": _id(book_id), "title": "Unknown Book", "author": "Unknown Author"}
    return {
        "id": _id(book["_id"]),
        "title": book.get("title"),
        "author": book.get("author"),
        "genre": book.get("genre", ""),
        "condition": book.get("condition"),
        "status": book.get("status"),
    }


def serialize_transaction(
    transaction: dict,
    books: Dict[ObjectId, dict],
    users: Dict[ObjectId, dict],
) -> dict:
    terms = transaction.get("terms") or {}
    return {
        "id": _id(transaction["_id"]),
        "book": _book_summary(books.get(transaction["book"]), transaction["book"]),
        "requester": _party(users.get(transaction["requester"]), transaction["requester"]),
        "owner": _party(users.get(transaction["owner"]), transaction["owner"]),
        "status": transaction.get("status"),
        "terms": {
            "deliveryMethod": terms.get("delivery_method"),
            "duration": terms.get("duration"),
            "location": terms.get("location"),
            "additionalNotes": terms.get("additional_notes"),
        },
        "messages": [
            {
                "sender": _party(users.get(message["sender"]), message["sender"], with_email=False),
                "content": message.get("content"),
                "createdAt": message.get("created_at"),
                "read": message.get("read", False),
                "notified": message.get("notified", False),
            }
            for message in transaction.get("messages", [])
        ],
        "lastModifiedBy": _party(
            users.get(transaction.get("last_modified_by")),
            transaction.get("last_modified_by"),
            with_email=False,
        ),
        "createdAt": transaction.get("created_at"),
        "updatedAt": transaction.get("updated_at"),
    }


async def fetch_by_ids(collection, ids: Iterable[ObjectId]) -> Dict[ObjectId, dict]:
    unique_ids = list({oid for oid in ids if oid is not None})
    if not unique_ids:
        return {}
    found = {}
    async for document in collection.find({"_id": {"$in": unique_ids}}):
        found[document["_id"]] = document
    return found


async def populate_transactions(db, transactions: List[dict]) -> List[dict]:
    """Resolve book and user references the way the list endpoints expect."""
    book_ids = [t["book"] for t in transactions]
    user_ids = []
    for t in transactions:
        user_ids.extend([t["requester"], t["owner"], t.get("last_modified_by")])
        user_ids.extend(m["sender"] for m in t.get("messages", []))

    books = await fetch_by_ids(db.books, book_ids)
    users = await fetch_by_ids(db.users, user_ids)
    return [serialize_transaction(t, books, users) for t in transactions]


async def populate_books(db, books: List[dict]) -> List[dict]:
    owners = await fetch_by_ids(db.users, [b.get("owner") for b in books])
    return [serialize_book(b, owners.get(b.get("owner"))) for b in books]
