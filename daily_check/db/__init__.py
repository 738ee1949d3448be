from daily_check.db.session import async_session_maker, get_db, init_db, upsert_insert
from daily_check.db.base import Base

__all__ = ["Base", "async_session_maker", "get_db", "init_db", "upsert_insert"]
