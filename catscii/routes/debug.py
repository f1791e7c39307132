"""
catscii — Debug Routes
========================

What:  GET /panic crashes the handling task on purpose.
Why:   Verifies that an unhandled fault reaches Sentry end to end.
When:  Mounted by create_app() only when ENABLE_PANIC_ROUTE=true.
"""

from fastapi import APIRouter

router = APIRouter(tags=["Debug"], include_in_schema=False)


@router.get("/panic")
async def panic() -> None:
    raise RuntimeError("This is a test panic")
