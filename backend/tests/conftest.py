import os
import sys

import fakeredis.aioredis
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

# roundnet.main refuses to import without explicit origins
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:3000")

from roundnet.schemas import GameSettings  # noqa: E402
from roundnet.services import Scoreboard  # noqa: E402


@pytest.fixture
def settings():
    return GameSettings()


@pytest.fixture
def scoreboard():
    return Scoreboard()


@pytest.fixture
def fake_redis():
    return fakeredis.aioredis.FakeRedis(decode_responses=True)
