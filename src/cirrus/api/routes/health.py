"""Liveness, readiness and clock status endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select, text

from cirrus.db.models.clock_job import ClockJobRow

router = APIRouter()


@router.get("/health/live")
async def liveness():
    return {"status": "alive"}


def _clock_status(app) -> str:
    task = getattr(app.state, "clock_task", None)
    if task is None:
        return "disabled"
    return "stopped" if task.done() else "running"


@router.get("/health/ready")
async def readiness(request: Request):
    """Report whether the store answers and the clock loop is alive.

    Redis only feeds workers, so an unreachable Redis is reported but the
    controller stays ready while the jobs table can still take writes.
    """
    checks: dict[str, str] = {}
    ready = True

    try:
        async with request.app.state.db_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as exc:
        checks["database"] = f"error: {exc}"
        ready = False

    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        checks["redis"] = "disabled"
    else:
        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception as exc:
            checks["redis"] = f"error: {exc}"

    checks["clock"] = _clock_status(request.app)
    if checks["clock"] == "stopped":
        ready = False

    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )


@router.get("/health/clock")
async def clock_jobs(request: Request):
    """Last start and completion time of every clock job seen by the store."""
    async with request.app.state.db_session_factory() as session:
        rows = (await session.execute(select(ClockJobRow).order_by(ClockJobRow.name))).scalars().all()
    return {
        "clock": _clock_status(request.app),
        "jobs": [
            {
                "name": row.name,
                "last_started_at": row.last_started_at.isoformat() if row.last_started_at else None,
                "last_completed_at": row.last_completed_at.isoformat() if row.last_completed_at else None,
            }
            for row in rows
        ],
    }
