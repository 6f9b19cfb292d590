from pokeroster.db.database import Database, database, get_database, init_db
from pokeroster.db.streams import ChangeNotifier, Subscription

__all__ = [
    "ChangeNotifier",
    "Database",
    "Subscription",
    "database",
    "get_database",
    "init_db",
]
