# config.py
# Tunables for the study hierarchy tree engine

# Loaded from STUDY_TREE_* environment variables via pydantic-settings.
# The engine is pure, so these only affect policy choices and logging.

# @see: reorder_planner.py - inside_current_parent policy
# @see: tree_builder.py - log_malformed_input

from typing import Literal, Optional

from pydantic_settings import BaseSettings


class StudyTreeConfig(BaseSettings):
    """
    Configuration for tree building and move planning.

    All settings can be overridden via environment variables with
    the STUDY_TREE_ prefix (e.g., STUDY_TREE_INSIDE_CURRENT_PARENT=noop).
    """

    # -------------------------------------------------------------------------
    # Move Planning
    # -------------------------------------------------------------------------
    # Dropping a node "inside" the parent it already lives in either moves it
    # to the end of the group ("append") or leaves everything as is ("noop").
    inside_current_parent: Literal["append", "noop"] = "append"

    # -------------------------------------------------------------------------
    # Tree Building
    # -------------------------------------------------------------------------
    # Warn about dangling, self-referencing or cyclic parent links.
    log_malformed_input: bool = True

    model_config = {
        "env_prefix": "STUDY_TREE_",
        "env_file": ".env",
        "extra": "ignore",
    }


# Module-level singleton instance
_config_instance: Optional[StudyTreeConfig] = None


def get_study_tree_config() -> StudyTreeConfig:
    """
    Get tree engine configuration singleton.

    Returns:
        StudyTreeConfig instance with settings loaded from environment.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = StudyTreeConfig()
    return _config_instance
