from .auth_routes import router as auth_routes
from .book_routes import router as book_routes
from .exchange_routes import router as exchange_routes
from .user_routes import router as user_routes
from .preferences_routes import router as preferences_routes
from .stats_routes import router as stats_routes

__all__ = [
    'auth_routes',
    'book_routes',
    'exchange_routes',
    'user_routes',
    'preferences_routes',
    'stats_routes',
]
