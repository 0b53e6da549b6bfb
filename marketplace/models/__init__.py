"""Expose ORM models."""
from .favorite import Favorite
from .listing import Listing
from .notification import UserNotification

__all__ = [
    "Favorite",
    "Listing",
    "UserNotification",
]
