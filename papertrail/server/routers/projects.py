"""Saved writing-session endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from papertrail.server.errors import NotFoundError, ValidationError
from papertrail.server.state import AppState, get_state

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectBody(BaseModel):
    name: Optional[str] = None
    title: Optional[str] = None
    sections: dict[str, str] = {}
    metadata: dict[str, Any] = {}


@router.get("")
def list_projects(state: AppState = Depends(get_state)):
    projects = [p.to_dict() for p in state.db.projects.all()]
    return {"success": True, "projects": projects, "count": len(projects)}


@router.get("/{project_id}")
def get_project(project_id: str, state: AppState = Depends(get_state)):
    project = state.db.projects.get(project_id)
    if project is None:
        raise NotFoundError("Project not found")
    return {"success": True, "project": project.to_dict()}


@router.post("")
def save_project(body: ProjectBody, state: AppState = Depends(get_state)):
    """Create a project, or overwrite the one with the same name."""
    if not body.name:
        raise ValidationError("Project name is required")
    project_id = state.db.projects.save(body.model_dump())
    return {"success": True, "projectId": project_id, "message": "Project saved successfully"}
