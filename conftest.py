# conftest.py
# Pytest configuration for the studies hierarchy test environment
#
# Sets test-mode environment flags before api.config is imported so no
# Firebase credentials are needed.
#
# @see: api/config.py - Reads these flags at import time
# @note: Uses STUDIES_TEST_MODE=true and the in-memory mock Firestore

import os

os.environ.setdefault("STUDIES_TEST_MODE", "true")
os.environ.setdefault("USE_REAL_FIREBASE", "false")
os.environ.setdefault("MOCK_DB_FILE", "")
