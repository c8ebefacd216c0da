"""
============================================================================
FILE: main.py
LOCATION: api/main.py
============================================================================

PURPOSE:
    FastAPI application serving the studies hierarchy.

ROLE IN PROJECT:
    Mounts the study nodes router (CRUD, tree reads, drag-and-drop moves)
    and exposes a root health endpoint.

DEPENDENCIES:
    - External: fastapi
    - Internal: api.study_nodes, api.logging_config

USAGE:
    uvicorn api.main:app --reload
============================================================================
"""
from fastapi import FastAPI

from api.config import STUDIES_TEST_MODE, USE_MOCK_DB
from api.logging_config import logger
from api.study_nodes import study_nodes_router

app = FastAPI(title="Studies Hierarchy API", version="1.0.0")
app.include_router(study_nodes_router)

logger.info(
    "Studies API ready (mock_db=%s, test_mode=%s)",
    USE_MOCK_DB,
    STUDIES_TEST_MODE,
)


@app.get("/")
def root():
    return {"message": "Studies Hierarchy API - Study Nodes"}
