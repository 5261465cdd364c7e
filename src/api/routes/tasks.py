"""Read-only task and client views so the chat UI can refresh after a turn."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from src.api.dependencies import get_store
from src.crm.models import Client, DueWindow, Task, TaskChange, TaskFilters, TaskStatus
from src.crm.store import CrmStore

router = APIRouter()


@router.get("/api/tasks", response_model=list[Task])
async def list_tasks(
    store: Annotated[CrmStore, Depends(get_store)],
    status: TaskStatus | None = None,
    client_id: Annotated[str | None, Query(alias="clientId")] = None,
    ai_completed: Annotated[bool | None, Query(alias="aiCompleted")] = None,
    due: DueWindow | None = None,
) -> list[Task]:
    """List tasks, earliest due first."""
    filters = TaskFilters(status=status, client_id=client_id, ai_completed=ai_completed, due=due)
    return store.list_tasks(filters)


@router.get("/api/tasks/{task_id}", response_model=Task)
async def get_task(task_id: str, store: Annotated[CrmStore, Depends(get_store)]) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/api/clients", response_model=list[Client])
async def list_clients(
    store: Annotated[CrmStore, Depends(get_store)],
    name: str | None = None,
    risk_profile: Annotated[str | None, Query(alias="riskProfile")] = None,
) -> list[Client]:
    """List clients by name, optionally filtered by a name fragment or risk profile."""
    return store.list_clients(name=name, risk_profile=risk_profile)


@router.get("/api/clients/{client_id}", response_model=Client)
async def get_client(client_id: str, store: Annotated[CrmStore, Depends(get_store)]) -> Client:
    client = store.get_client(client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("/api/changes", response_model=list[TaskChange])
async def list_changes(store: Annotated[CrmStore, Depends(get_store)]) -> list[TaskChange]:
    """Audit trail of task changes made from chat, newest first."""
    return store.changes()


@router.post("/api/demo/reset", status_code=204)
async def reset_demo_data(store: Annotated[CrmStore, Depends(get_store)]) -> Response:
    """Restore the demo tasks and clients, discarding every change."""
    store.reset()
    return Response(status_code=204)
