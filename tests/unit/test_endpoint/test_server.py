"""Tests for the HTTP endpoint server."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from termbridge.config.settings import Settings
from termbridge.console.process_console import ProcessConsole
from termbridge.endpoint.gateway import Gateway
from termbridge.endpoint.server import client_identity, create_app
from termbridge.evaluator.evaluator import Evaluator
from termbridge.normalizer.command import CommandNormalizer
from termbridge.normalizer.policy import CommandPolicy
from termbridge.process.runner import ProcessRunner


def make_gateway(evaluator: Evaluator, console) -> Gateway:
    return Gateway(
        normalizer=CommandNormalizer(),
        policy=CommandPolicy(),
        evaluator=evaluator,
        tool=AsyncMock(),
        console=console,
    )


class TestEndpointServer:
    """Test the FastAPI endpoint server routes."""

    @pytest.fixture
    def client(self, settings: Settings, evaluator: Evaluator, mock_console: AsyncMock):
        app = create_app(settings, make_gateway(evaluator, mock_console))
        with TestClient(app) as client:
            yield client

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "store": "memory"}

    def test_endpoint_success(self, client: TestClient) -> None:
        body = {"jsonrpc": "2.0", "id": 1, "method": "python", "params": ["1 + 1"]}
        response = client.post("/endpoint", json=body)
        assert response.status_code == 200
        assert response.json() == {"jsonrpc": "2.0", "id": 1, "result": ">>> 1 + 1\n=> 2"}

    def test_endpoint_rejected(self, client: TestClient, mock_console: AsyncMock) -> None:
        response = client.post("/endpoint", json={"id": 3, "method": "migrate", "params": []})
        data = response.json()
        assert response.status_code == 200
        assert "result" not in data
        assert data["id"] == 3
        assert data["error"]["code"] == -32600
        mock_console.call.assert_not_awaited()

    def test_endpoint_evaluation_error(self, client: TestClient) -> None:
        response = client.post("/endpoint", json={"id": 5, "method": "python", "params": ["1/0"]})
        data = response.json()
        assert "error" not in data
        assert data["result"].endswith("ZeroDivisionError: division by zero")

    def test_endpoint_structured(self, client: TestClient) -> None:
        response = client.post("/endpoint", json={"id": 4, "method": "route:list"})
        assert response.json()["result"] == "ran route:list --no-interaction"

    def test_endpoint_malformed_params(self, client: TestClient) -> None:
        response = client.post("/endpoint", json={"method": "python", "params": 5})
        assert response.status_code == 422

    def test_stream(self, client: TestClient) -> None:
        body = {"method": "python", "params": ["print('a'); print('b')"]}
        response = client.post("/endpoint/stream", json=body)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == ">>> print('a'); print('b')\na\nb\n=> null\n"

    def test_stream_rejected(self, client: TestClient) -> None:
        response = client.post("/endpoint/stream", json={"method": "db:seed"})
        assert response.status_code == 400
        assert "not allowed" in response.json()["detail"]

    def test_stream_internal_error(self, client: TestClient, mock_console: AsyncMock) -> None:
        mock_console.call.side_effect = RuntimeError("boom")
        response = client.post("/endpoint/stream", json={"method": "list"})
        assert response.text == "Internal Error: boom\n"

    def test_help(self, client: TestClient) -> None:
        response = client.get("/help")
        assert response.json() == {"help": "ran list --no-interaction"}


class TestHelpFailure:
    def test_unconfigured_console(self, settings: Settings, evaluator: Evaluator,
                                  tmp_path: Path) -> None:
        gateway = make_gateway(evaluator, ProcessConsole(ProcessRunner(tmp_path)))
        with TestClient(create_app(settings, gateway)) as client:
            response = client.get("/help")
        assert response.json()["help"] == (
            "Terminal initialization failed: No host console configured (set console.command)"
        )


class TestWhitelist:
    def test_closed_endpoint_refuses_unknown_client(
        self, settings: Settings, evaluator: Evaluator, mock_console: AsyncMock
    ) -> None:
        settings.endpoint.enabled = False
        app = create_app(settings, make_gateway(evaluator, mock_console))
        with TestClient(app) as client:
            assert client.post("/endpoint", json={"method": "list"}).status_code == 403
            assert client.get("/health").status_code == 200

    def test_closed_endpoint_allows_whitelisted_client(
        self, settings: Settings, evaluator: Evaluator, mock_console: AsyncMock
    ) -> None:
        settings.endpoint.enabled = False
        settings.endpoint.whitelists = ["testclient"]
        app = create_app(settings, make_gateway(evaluator, mock_console))
        with TestClient(app) as client:
            assert client.post("/endpoint", json={"method": "list"}).status_code == 200

    def test_client_identity_without_peer(self) -> None:
        request = SimpleNamespace(client=None)
        assert client_identity(request) == "localhost"
