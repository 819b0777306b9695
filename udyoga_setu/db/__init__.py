"""
Database module - SQL and MongoDB connections.
"""
from udyoga_setu.db.postgres import get_db_session, database_ready
from udyoga_setu.db.mongodb import get_mongo_db, mongo_ready

__all__ = [
    "get_db_session",
    "database_ready",
    "get_mongo_db",
    "mongo_ready"
]
