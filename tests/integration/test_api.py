"""Integration tests for the FastAPI REST API."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from sitesmith.api.app import create_app
from sitesmith.api.deps import init_services, reset_services
from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.generation.upstream import UpstreamClient
from sitesmith.preview.compositor import SANDBOX_CSP
from sitesmith.storage.memory_repo import InMemoryProjectRepository
from tests.conftest import FakeUpstream, make_settings

PROMPT = "Create a landing page for a coffee shop"


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def store() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def app(upstream: FakeUpstream, store: InMemoryProjectRepository):
    settings = make_settings()
    application = create_app(settings=settings)
    # Manually init services (ASGITransport doesn't trigger lifespan)
    client = UpstreamClient(settings, transport=upstream.transport)
    init_services(GenerationOrchestrator(settings, client, store), store)
    yield application
    reset_services()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data

    async def test_security_headers(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-Duration-Ms" in response.headers


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGenerateEndpoint:
    async def test_generate(self, client: AsyncClient, store: InMemoryProjectRepository) -> None:
        response = await client.post("/projects/generate", json={"prompt": PROMPT})
        assert response.status_code == 200
        data = response.json()
        assert [f["path"] for f in data["files"]] == ["index.html", "style.css", "script.js"]
        assert data["files"][0]["kind"] == "html"
        assert data["savedProjectId"] is None
        assert await store.list() == []

    async def test_generate_and_save(self, client: AsyncClient) -> None:
        response = await client.post(
            "/projects/generate",
            json={"prompt": PROMPT, "saveProject": True, "title": "Coffee"},
        )
        assert response.status_code == 200
        project_id = response.json()["savedProjectId"]
        assert project_id is not None

        detail = (await client.get(f"/projects/{project_id}")).json()
        assert detail["title"] == "Coffee"
        assert {f["path"] for f in detail["files"]} == {"index.html", "style.css", "script.js"}

    async def test_short_prompt(self, client: AsyncClient, upstream: FakeUpstream) -> None:
        response = await client.post("/projects/generate", json={"prompt": "short"})
        assert response.status_code == 422
        data = response.json()
        assert data["kind"] == "validation_error"
        assert data["retriable"] is False
        assert data["error"].startswith("Invalid request: prompt")
        assert upstream.requests == []

    async def test_upstream_rate_limited(self, client: AsyncClient, upstream: FakeUpstream) -> None:
        upstream.status_code = 429
        response = await client.post("/projects/generate", json={"prompt": PROMPT})
        assert response.status_code == 503
        data = response.json()
        assert data["kind"] == "upstream_rate_limited"
        assert data["retriable"] is True
        assert "files" not in data

    async def test_no_recognizable_output(
        self, client: AsyncClient, upstream: FakeUpstream
    ) -> None:
        upstream.payload = {"response": "I would rather not."}
        response = await client.post("/projects/generate", json={"prompt": PROMPT})
        assert response.status_code == 502
        assert response.json()["kind"] == "no_recognizable_output"


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


SAVE_BODY = {
    "prompt": PROMPT,
    "title": "Coffee",
    "description": "A warm page",
    "files": [
        {"path": "index.html", "content": "<h1>Coffee</h1>", "kind": "html"},
        {"path": "style.css", "content": "h1 { color: brown; }", "kind": "css"},
    ],
}


class TestProjectEndpoints:
    async def test_create_and_get(self, client: AsyncClient) -> None:
        response = await client.post("/projects", json=SAVE_BODY)
        assert response.status_code == 201
        project_id = response.json()["projectId"]

        response = await client.get(f"/projects/{project_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Coffee"
        assert data["description"] == "A warm page"
        assert data["files"] == SAVE_BODY["files"]

    async def test_list_newest_first(self, client: AsyncClient) -> None:
        first = (await client.post("/projects", json=SAVE_BODY)).json()["projectId"]
        second = (await client.post("/projects", json={**SAVE_BODY, "title": "Tea"})).json()[
            "projectId"
        ]
        response = await client.get("/projects")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [second, first]
        assert "files" not in response.json()[0]

    async def test_get_not_found(self, client: AsyncClient) -> None:
        response = await client.get("/projects/12345")
        assert response.status_code == 404
        assert response.json() == {
            "error": "Project 12345 was not found.",
            "kind": "not_found",
            "retriable": False,
        }

    async def test_get_non_integer_id(self, client: AsyncClient) -> None:
        response = await client.get("/projects/abc")
        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    async def test_create_missing_title(self, client: AsyncClient) -> None:
        body = {k: v for k, v in SAVE_BODY.items() if k != "title"}
        response = await client.post("/projects", json=body)
        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    async def test_create_failure_returns_files(
        self, client: AsyncClient, store: InMemoryProjectRepository, monkeypatch
    ) -> None:
        async def broken_create(project, files):
            raise RuntimeError("disk full")

        monkeypatch.setattr(store, "create", broken_create)
        response = await client.post("/projects", json=SAVE_BODY)
        assert response.status_code == 500
        data = response.json()
        assert data["kind"] == "persistence_error"
        assert data["retriable"] is True
        assert data["files"] == SAVE_BODY["files"]
        assert "disk full" not in data["error"]


# ---------------------------------------------------------------------------
# Preview
# ---------------------------------------------------------------------------


class TestPreviewEndpoint:
    async def test_preview(self, client: AsyncClient) -> None:
        body = {
            "files": [
                {"path": "index.html", "content": "<h1>Hello</h1>", "kind": "html"},
                {"path": "style.css", "content": "h1 { color: red; }", "kind": "css"},
                {"path": "script.js", "content": "console.log('hi');", "kind": "javascript"},
            ]
        }
        response = await client.post("/preview", json=body)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert response.headers["Content-Security-Policy"] == SANDBOX_CSP
        assert "X-Frame-Options" not in response.headers
        document = response.text
        assert "<style>h1 { color: red; }</style>" in document
        assert document.index("<h1>Hello</h1>") < document.index("<script>console.log('hi');")

    async def test_preview_without_files(self, client: AsyncClient) -> None:
        response = await client.post("/preview", json={})
        assert response.status_code == 200
        assert response.text.startswith("<!DOCTYPE html>")
