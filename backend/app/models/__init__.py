# Import all models here so SQLAlchemy Base sees them for create_all / Alembic
from app.models.user import User, UserSession
from app.models.watchlist import WatchlistEntry

__all__ = [
    "User",
    "UserSession",
    "WatchlistEntry",
]
