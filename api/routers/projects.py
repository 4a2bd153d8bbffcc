"""
Projects API Endpoints.

Browsing the blue carbon project catalog and submitting new projects.
"""

from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_current_user, get_store
from api.models import CreateProjectRequest, CreateProjectResponse, ProjectResponse
from domain.user import AuthenticatedUser
from repositories.kv_store import KeyValueStore
from services.project_service import create_project, get_marketplace_project, list_marketplace_projects

router = APIRouter()


@router.get(
    "/projects",
    response_model=List[ProjectResponse],
    summary="List Projects",
    description="All projects in the marketplace catalog.",
)
def get_projects(store: KeyValueStore = Depends(get_store)):
    return [ProjectResponse.from_domain(project) for project in list_marketplace_projects(store)]


@router.get(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    summary="Get Project",
)
def get_project(project_id: str, store: KeyValueStore = Depends(get_store)):
    return ProjectResponse.from_domain(get_marketplace_project(store, project_id))


@router.post(
    "/projects",
    response_model=CreateProjectResponse,
    summary="Submit Project",
    description="Submit a new project. It enters the catalog as pending_verification.",
)
def submit_project(
    request: CreateProjectRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    """
    Submit a new blue carbon project for verification.

    **Required:** name, location, type, price, certification.

    **Example request:**
    ```json
    {
      "name": "Seagrass Revival - Chilika Lake",
      "location": "Odisha, India",
      "type": "Restoration",
      "price": 18,
      "certification": "Verified Carbon Standard (VCS)",
      "credits_available": 12000,
      "co_benefits": ["Fisheries", "Biodiversity"]
    }
    ```
    """
    project = create_project(store, request.model_dump())
    return CreateProjectResponse(project=ProjectResponse.from_domain(project))
