from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from task_thrower.domain import date_only
from task_thrower.domain.task_models import (
    AddTaskRequest,
    BandChangeRequest,
    Bucket,
    ReorderRequest,
    TaskViews,
    ThrowRequest,
)
from task_thrower.services.task_service import TaskService

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def get_service(request: Request) -> TaskService:
    # Wired in main.create_app()
    return request.app.state.task_service


def owner_id(x_owner_id: str = Header(default="")) -> str:
    # Sign-in lives outside this service; callers pass the owner through.
    return x_owner_id.strip()


def reference_date(date: Optional[str] = Query(default=None)) -> str:
    return date or date_only.today()


@router.get("", response_model=TaskViews)
async def list_views(
    tab: Bucket = Bucket.today,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.views(owner, ref, tab=tab)


@router.post("", response_model=TaskViews, status_code=201)
async def add_task(
    payload: AddTaskRequest,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.add_task(owner, payload.title, ref, sort_order=payload.sort_order)


@router.post("/reorder", response_model=TaskViews)
async def reorder(
    payload: ReorderRequest,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.reorder(owner, payload.moved_id, payload.target_index, ref)


@router.post("/throw", response_model=TaskViews)
async def throw(
    payload: ThrowRequest,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.throw(owner, payload.action, ref, ids=payload.ids)


@router.post("/{task_id}/advance", response_model=TaskViews)
async def advance(
    task_id: str,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.advance_one_day(owner, task_id, ref)


@router.post("/{task_id}/complete", response_model=TaskViews)
async def complete(
    task_id: str,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.complete(owner, task_id, ref)


@router.post("/{task_id}/remove", response_model=TaskViews)
async def remove(
    task_id: str,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.remove(owner, task_id, ref)


@router.post("/{task_id}/restore", response_model=TaskViews)
async def restore(
    task_id: str,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.restore(owner, task_id, ref)


@router.put("/{task_id}/band", response_model=TaskViews)
async def change_band(
    task_id: str,
    payload: BandChangeRequest,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.change_band(owner, task_id, payload.sort_order, ref)


@router.post("/{task_id}/select", response_model=List[str])
async def toggle_selected(
    task_id: str,
    owner: str = Depends(owner_id),
    ref: str = Depends(reference_date),
    svc: TaskService = Depends(get_service),
):
    return await svc.toggle_selected(owner, task_id, ref)
