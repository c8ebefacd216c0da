"""
============================================================================
FILE: config.py
LOCATION: api/config.py
============================================================================

PURPOSE:
    Centralized configuration for Firestore access and logging.

ROLE IN PROJECT:
    Loads environment variables and initializes the Firestore client used
    by the study node repository, supporting mock and real Firebase usage.

KEY COMPONENTS:
    - get_db: Returns mock or real Firestore client
    - init_firebase: Initializes Firebase Admin SDK
    - reset_db: Drops the cached client (tests)

DEPENDENCIES:
    - External: firebase_admin, python-dotenv
    - Internal: mock_firestore (when USE_REAL_FIREBASE is false)

USAGE:
    from api.config import get_db, STUDY_NODES_COLLECTION
============================================================================
"""

import os
from pathlib import Path

import dotenv
import firebase_admin
from firebase_admin import credentials
from firebase_admin import firestore


# Load environment variables from .env
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DOTENV_PATH = PROJECT_ROOT / ".env"
if DOTENV_PATH.exists():
    dotenv.load_dotenv(DOTENV_PATH, override=True)

# Test Mode (hermetic runs, no external services)
STUDIES_TEST_MODE = os.getenv("STUDIES_TEST_MODE", "false").lower() == "true"

# Firestore Configuration
STUDY_NODES_COLLECTION = os.getenv("STUDY_NODES_COLLECTION", "study_nodes")

# Mock Database Configuration
USE_REAL_FIREBASE = os.getenv("USE_REAL_FIREBASE", "false").lower() == "true"
USE_MOCK_DB = not USE_REAL_FIREBASE
# Empty means in-memory only
MOCK_DB_FILE = os.getenv("MOCK_DB_FILE", "")

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

# Global database instance
_db_instance = None


def _resolve_credentials_path():
    """Resolve the Firebase credentials file path.

    Returns:
        Path: Absolute path to the service account JSON file.
    """
    env_path = os.getenv("FIREBASE_CREDENTIALS")
    if env_path:
        path = Path(env_path)
        if not path.is_absolute():
            path = PROJECT_ROOT / env_path
        return path
    return PROJECT_ROOT / "serviceAccountKey.json"


def get_db():
    """Get Firestore database client (mock or real).

    Returns:
        object: Firestore client or MockFirestoreClient instance.

    Raises:
        FileNotFoundError: If real Firebase credentials are missing.
    """
    global _db_instance
    if _db_instance is None:
        if USE_MOCK_DB:
            from api.mock_firestore import get_mock_db

            _db_instance = get_mock_db(MOCK_DB_FILE or None)
        else:
            init_firebase()
            _db_instance = firestore.client()
    return _db_instance


def reset_db():
    """Forget the cached client so the next get_db() builds a fresh one."""
    global _db_instance
    _db_instance = None


def init_firebase():
    """Initialize Firebase Admin SDK.

    Raises:
        FileNotFoundError: If real Firebase credentials are missing.
    """
    if not firebase_admin._apps:
        key_path = _resolve_credentials_path()
        if not key_path.exists():
            raise FileNotFoundError(
                f"Firebase credentials not found: {key_path}",
            )
        cred = credentials.Certificate(str(key_path))
        firebase_admin.initialize_app(cred)
