"""
============================================================================
FILE: __init__.py
LOCATION: api/__init__.py
============================================================================

PURPOSE:
    Package initialization for the studies hierarchy API.

EXPORTS:
    None at package level; import from the submodules directly.

USAGE:
    from api.main import app
    from api.study_nodes import StudyNodeService, study_nodes_router
============================================================================
"""
