import uuid

import httpx
import pytest
from fastapi.testclient import TestClient

from app.auth import AuthUser, get_current_user
from app.database import get_supabase
from app.services.extractor import DocumentExtractor, get_document_extractor
from app.services.gemini import get_gemini_service
from main import app
from tests.fakes import FakeGemini, FakeSupabase


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def gemini():
    return FakeGemini()


@pytest.fixture
def user():
    return AuthUser(
        id=str(uuid.uuid4()),
        email="ada@example.com",
        metadata={"full_name": "Ada Lovelace"},
    )


@pytest.fixture
def other_user():
    return AuthUser(id=str(uuid.uuid4()), email="grace@example.com")


@pytest.fixture
def extractor(supabase):
    """Extractor that downloads from the fake storage bucket"""

    def handler(request: httpx.Request) -> httpx.Response:
        data = supabase.storage.get_by_url(str(request.url))
        if data is None:
            return httpx.Response(404)
        return httpx.Response(200, content=data)

    return DocumentExtractor(transport=httpx.MockTransport(handler))


@pytest.fixture
def client(supabase, gemini, user, extractor):
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_gemini_service] = lambda: gemini
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_document_extractor] = lambda: extractor
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()
