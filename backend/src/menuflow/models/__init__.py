"""SQLAlchemy Models for MenuFlow"""

from .base import Base, PortableJSONB, utcnow
from .location import Location, StaffRole, STAFF_ROLES
from .menu_ingestion import MenuIngestion
from .menu_item_staging import MenuItemStaging
from .ingestion_event import IngestionEvent
from .menu import Menu, MenuCategory, MenuItem

__all__ = [
    "Base",
    "PortableJSONB",
    "utcnow",
    "Location",
    "StaffRole",
    "STAFF_ROLES",
    "MenuIngestion",
    "MenuItemStaging",
    "IngestionEvent",
    "Menu",
    "MenuCategory",
    "MenuItem",
]
