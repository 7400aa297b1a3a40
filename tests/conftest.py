"""Shared test fixtures for Sitesmith."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from sitesmith.generation.orchestrator import GenerationOrchestrator
from sitesmith.generation.upstream import UpstreamClient
from sitesmith.settings import Settings
from sitesmith.storage.memory_repo import InMemoryProjectRepository
from sitesmith.storage.repository import ProjectRepository

LANDING_PAGE_TEXT = """\
Here is your landing page.

```html
<!-- index.html -->
<!DOCTYPE html>
<html lang="en">
<head>
    <title>Launch</title>
    <link rel="stylesheet" href="style.css">
</head>
<body>
    <header class="hero"><h1>Launch faster</h1></header>
    <script src="script.js"></script>
</body>
</html>
```

```css
/* style.css */
body { margin: 0; font-family: Arial, sans-serif; }
.hero { padding: 4rem; }
```

```javascript
// script.js
document.addEventListener('DOMContentLoaded', function() {
    console.log('ready');
});
```

Enjoy your new site!
"""


class FakeUpstream:
    """Scripted stand-in for the upstream service, served via ``httpx.MockTransport``."""

    def __init__(
        self,
        *,
        payload: Any = None,
        status_code: int = 200,
        text: str | None = None,
        error: Callable[[httpx.Request], Exception] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.payload = {"response": LANDING_PAGE_TEXT} if payload is None else payload
        self.status_code = status_code
        self.text = text
        self.error = error
        self.delay = delay
        self.requests: list[httpx.Request] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "upstream_api_key": "test-key",
        "upstream_url": "https://upstream.test/v3/inference/chat/",
        "upstream_timeout_seconds": 2.0,
        "database_url": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def repository() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


OrchestratorFactory = Callable[..., GenerationOrchestrator]


@pytest.fixture
def make_orchestrator(
    settings: Settings, repository: InMemoryProjectRepository
) -> OrchestratorFactory:
    """Build an orchestrator wired to a FakeUpstream."""

    def factory(
        upstream: FakeUpstream,
        *,
        settings: Settings = settings,
        repository: ProjectRepository = repository,
    ) -> GenerationOrchestrator:
        client = UpstreamClient(settings, transport=upstream.transport)
        return GenerationOrchestrator(settings, client, repository)

    return factory
