# __init__.py
# Package exports for the study nodes API

# Provides clean imports for the study_nodes package.
# Usage: from api.study_nodes import StudyNodeService, study_nodes_router

from .models import (
    BreadcrumbResponse,
    DeleteResponse,
    MoveRequest,
    MoveResponse,
    NextKindResponse,
    StudyNodeCreate,
    StudyNodeListResponse,
    StudyNodeTreeResponse,
    StudyNodeUpdate,
)
from .repository import DuplicateNameError, StudyNodeRepository
from .service import StudyNodeService
from .router import router as study_nodes_router

__all__ = [
    # Models
    "StudyNodeCreate",
    "StudyNodeUpdate",
    "MoveRequest",
    "MoveResponse",
    "StudyNodeListResponse",
    "StudyNodeTreeResponse",
    "BreadcrumbResponse",
    "NextKindResponse",
    "DeleteResponse",
    # Persistence
    "StudyNodeRepository",
    "DuplicateNameError",
    # Services
    "StudyNodeService",
    # Router
    "study_nodes_router",
]
