import logging
import math
import re
from datetime import datetime
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import ASCENDING, DESCENDING

from dependencies import get_current_user_id, get_db, get_optional_user_id
from errors import Forbidden, InvalidObjectId, NotFound, ValidationError, server_error
from models.book_models import ALL, ITEMS_PER_PAGE, BookSort, BookStatus, title_sort_key
from models.post_book_model import PostBookModel
from models.update_book_model import UpdateBookModel
from serializers import populate_books
from utils import to_object_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])

SORT_KEYS = {
    BookSort.NEWEST: [("created_at", DESCENDING), ("_id", DESCENDING)],
    BookSort.OLDEST: [("created_at", ASCENDING), ("_id", ASCENDING)],
    BookSort.TITLE_ASC: [("sort_title", ASCENDING)],
    BookSort.TITLE_DESC: [("sort_title", DESCENDING)],
}


def build_book_query(
    search: Optional[str] = None,
    genre: Optional[str] = None,
    condition: Optional[str] = None,
    location: Optional[str] = None,
) -> dict:
    query = {"status": BookStatus.AVAILABLE.value}
    if search and search.strip():
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"author": pattern}]
    for field, value in (("genre", genre), ("condition", condition), ("location", location)):
        if value and value != ALL:
            query[field] = value
    return query


def rank_by_preference(books: list, genres: list) -> list:
    """Preferred genres first; sorted() is stable so ties keep their order."""
    if not genres:
        return books
    preferred = set(genres)
    return sorted(books, key=lambda book: 0 if book.get("genre") in preferred else 1)


@router.get("")
async def get_books(
    page: int = Query(1, ge=1),
    search: Optional[str] = None,
    genre: Optional[str] = None,
    condition: Optional[str] = None,
    location: Optional[str] = None,
    sortBy: Optional[BookSort] = None,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db=Depends(get_db),
):
    try:
        query = build_book_query(search, genre, condition, location)
        total_books = await db.books.count_documents(query)

        sort_keys = SORT_KEYS.get(sortBy, SORT_KEYS[BookSort.NEWEST])
        cursor = db.books.find(
            query,
            sort=sort_keys,
            skip=(page - 1) * ITEMS_PER_PAGE,
            limit=ITEMS_PER_PAGE,
        )
        books = [book async for book in cursor]

        if sortBy == BookSort.RECOMMENDED and user_id:
            current_user = await db.users.find_one({"_id": to_object_id(user_id)})
            user_genres = ((current_user or {}).get("preferences") or {}).get("genres", [])
            books = rank_by_preference(books, user_genres)

        return {
            "data": {
                "books": await populate_books(db, books),
                "pagination": {
                    "currentPage": page,
                    "totalPages": math.ceil(total_books / ITEMS_PER_PAGE),
                    "totalItems": total_books,
                    "itemsPerPage": ITEMS_PER_PAGE,
                },
            }
        }
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch books")
        raise server_error("Failed to fetch books")


@router.get("/user")
async def get_user_books(user_id: str = Depends(get_current_user_id), db=Depends(get_db)):
    try:
        cursor = db.books.find(
            {"owner": to_object_id(user_id)},
            sort=[("created_at", DESCENDING)],
        )
        books = [book async for book in cursor]
        return {"data": {"books": await populate_books(db, books)}}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch user books")
        raise server_error("Failed to fetch books")


@router.post("", status_code=201)
async def add_new_book(
    book: PostBookModel,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        book_dict = {
            "title": book.title,
            "sort_title": title_sort_key(book.title),
            "author": book.author,
            "genre": book.genre,
            "description": book.description.strip() if book.description else None,
            "condition": book.condition.value,
            "location": book.location.value,
            "owner": to_object_id(user_id),
            "status": BookStatus.AVAILABLE.value,
            "created_at": datetime.utcnow(),
        }
        result = await db.books.insert_one(book_dict)
        book_dict["_id"] = result.inserted_id
        logger.info("Book %s listed by user %s", result.inserted_id, user_id)

        created = await populate_books(db, [book_dict])
        return {"message": "Book created successfully", "data": created[0]}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to create book")
        raise server_error("Failed to create book")


@router.patch("/{book_id}")
async def update_book(
    book_id: str,
    updated_data: UpdateBookModel,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        book_oid = to_object_id(book_id)
        if book_oid is None:
            raise InvalidObjectId("Invalid book ID")

        update_dict = {
            k: v.value if isinstance(v, Enum) else v
            for k, v in updated_data.dict(exclude_unset=True).items()
            if v is not None or k == "description"
        }
        if not update_dict:
            raise ValidationError("No fields provided for update")
        if "title" in update_dict:
            update_dict["sort_title"] = title_sort_key(update_dict["title"])

        existing_book = await db.books.find_one({"_id": book_oid})
        if not existing_book:
            raise NotFound("Book not found")
        if str(existing_book["owner"]) != user_id:
            raise Forbidden("Not authorized to update this book")

        await db.books.update_one(
            {"_id": book_oid, "owner": existing_book["owner"]},
            {"$set": update_dict},
        )
        updated_book = await db.books.find_one({"_id": book_oid})
        if not updated_book:
            raise NotFound("Book not found after update")

        updated = await populate_books(db, [updated_book])
        return {"message": "Book updated successfully", "data": updated[0]}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Update book error")
        raise server_error("Failed to update book")


@router.delete("/{book_id}")
async def delete_book(
    book_id: str,
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_db),
):
    try:
        book_oid = to_object_id(book_id)
        if book_oid is None:
            raise NotFound("Book not found")

        result = await db.books.delete_one({"_id": book_oid, "owner": to_object_id(user_id)})
        if result.deleted_count == 0:
            raise NotFound("Book not found")

        logger.info("Book %s deleted by user %s", book_id, user_id)
        return {"message": "Book deleted successfully"}
    except HTTPException:
        raise
    except Exception:
        logger.exception("Delete book error")
        raise server_error("Delete failed")
