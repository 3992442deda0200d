from enum import Enum


class BookCondition(str, Enum):
    NEW = "New"
    LIKE_NEW = "Like New"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"


class BookLocation(str, Enum):
    MUMBAI = "Mumbai"
    DELHI = "Delhi"
    BANGALORE = "Bangalore"
    CHENNAI = "Chennai"
    HYDERABAD = "Hyderabad"


class BookStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    EXCHANGED = "exchanged"


class BookSort(str, Enum):
    RECOMMENDED = "recommended"
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"


ITEMS_PER_PAGE = 15

# filter value meaning "no filter"
ALL = "All"


def strip_required_text(value):
    """Shared by the create and update models; None passes through for partial updates."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Book fields cannot be blank")
    return value


def title_sort_key(title: str) -> str:
    return title.casefold()
