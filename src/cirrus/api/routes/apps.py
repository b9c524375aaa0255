"""Application lifecycle API routes."""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.dependencies import get_actor, get_collaborators, get_db, get_trace_id
from cirrus.models.actor import Actor
from cirrus.models.app import AppChangeSet, LifecycleResult
from cirrus.services.collaborators import Collaborators
from cirrus.services.lifecycle.state_machine import AppLifecycle
from cirrus.services.routing.route_mapping import RouteMappingCoordinator

router = APIRouter(prefix="/v2", tags=["Apps"])


def _render(result: LifecycleResult, response: Response) -> dict:
    if result.staging_job_id:
        response.headers["X-App-Staging-Job"] = result.staging_job_id
    for warning in result.warnings:
        response.headers.append("X-Cirrus-Warnings", warning)
    return result.model_dump(mode="json")


@router.post("/apps", status_code=201)
async def create_app(
    change_set: AppChangeSet,
    response: Response,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
    collaborators: Collaborators = Depends(get_collaborators),
    trace_id: str = Depends(get_trace_id),
) -> dict:
    lifecycle = AppLifecycle(db, actor, collaborators=collaborators, trace_id=trace_id)
    result = await lifecycle.create(change_set)
    response.headers["Location"] = f"/v2/apps/{result.app.guid}"
    return _render(result, response)


@router.put("/apps/{guid}", status_code=201)
async def update_app(
    guid: str,
    change_set: AppChangeSet,
    response: Response,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
    collaborators: Collaborators = Depends(get_collaborators),
    trace_id: str = Depends(get_trace_id),
) -> dict:
    lifecycle = AppLifecycle(db, actor, collaborators=collaborators, trace_id=trace_id)
    result = await lifecycle.update(guid, change_set)
    return _render(result, response)


@router.delete("/apps/{guid}", status_code=204)
async def delete_app(
    guid: str,
    recursive: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
    trace_id: str = Depends(get_trace_id),
) -> Response:
    await AppLifecycle(db, actor, trace_id=trace_id).delete(guid, recursive=recursive)
    return Response(status_code=204)


@router.put("/apps/{guid}/routes/{route_guid}", status_code=201)
async def add_route(
    guid: str,
    route_guid: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_actor),
    collaborators: Collaborators = Depends(get_collaborators),
    trace_id: str = Depends(get_trace_id),
) -> dict:
    coordinator = RouteMappingCoordinator(db, actor, collaborators=collaborators, trace_id=trace_id)
    app = await coordinator.add(guid, route_guid)
    return {"guid": app.guid, "name": app.name, "route_guid": route_guid}
