from __future__ import annotations

import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC = (_PROJECT_ROOT / "src").resolve()
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

# Load .env from project root, without overriding the real environment
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from stamper.config import RegistrySettings  # noqa: E402
from stamper.registry.service import PackageRegistry  # noqa: E402
from stamper.registry.storage import MemoryStore  # noqa: E402


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def registry(store) -> PackageRegistry:
    return PackageRegistry(store)


@pytest.fixture
def settings() -> RegistrySettings:
    return RegistrySettings(storage="memory", rate_limiter="none")
