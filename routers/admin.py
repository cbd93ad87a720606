from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from bank import reload_bank
from deps.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reload", dependencies=[Depends(require_admin)])
def reload_question_sets():
    n = reload_bank()
    logger.info("question bank reloaded by admin: %d set(s)", n)
    return {"ok": True, "count": n}
