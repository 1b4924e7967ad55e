import os
import sys
from pathlib import Path

import pytest

# Make `main` and `nap_tracker` importable when running from the repo root
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

os.environ.setdefault("NAP_TRACKER_CHESS_COM_DELAY", "0")
os.environ.setdefault("NAP_TRACKER_LICHESS_DELAY", "0")

from fastapi.testclient import TestClient

from main import app


@pytest.fixture(scope="session")
def client():
    return TestClient(app)
