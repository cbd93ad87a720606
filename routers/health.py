# routers/health.py
import logging
import os
from typing import Optional

from fastapi import APIRouter, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from alembic.config import Config
from alembic.script import ScriptDirectory
from bank import get_question_sets
from db import engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("database health check failed", exc_info=True)
        raise HTTPException(status_code=500, detail=f"db_error: {type(e).__name__}: {e}")
    return {"ok": True}


@router.get("/bank")
def health_bank():
    """An empty bank means every attempt start would 404."""
    sets = get_question_sets()
    return {"ok": bool(sets), "question_sets": len(sets)}


def _code_heads() -> list[str]:
    cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
    return list(ScriptDirectory.from_config(cfg).get_heads())


def _db_version(conn) -> Optional[str]:
    try:
        return conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one_or_none()
    except SQLAlchemyError:
        # never stamped
        return None


@router.get("/migrations")
def health_migrations():
    heads: list[str] = []
    try:
        heads = _code_heads()
    except Exception:
        logger.warning("could not read alembic heads", exc_info=True)

    try:
        with engine.connect() as conn:
            db_ver = _db_version(conn)
    except SQLAlchemyError as e:
        logger.error("migration check could not reach the database", exc_info=True)
        return {"ok": False, "error": f"db_connect_failed: {e}", "code_heads": heads, "db_version": None}

    # several heads means a branch was never merged
    synced = len(heads) == 1 and db_ver == heads[0]
    return {"ok": synced, "synced": synced, "db_version": db_ver, "code_heads": heads}
