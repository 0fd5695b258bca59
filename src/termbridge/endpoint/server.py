"""FastAPI HTTP server for the JSON-RPC command endpoint.

Receives method + params requests, runs them through the Gateway and
returns JSON-RPC envelopes. A streaming variant returns transcript
lines as they are produced, which is how long-running package tool
output reaches the caller before the command finishes.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from termbridge.config.settings import Settings, load_settings
from termbridge.console.base import ConsoleError
from termbridge.domain.models import RpcRequest, RpcResponse
from termbridge.endpoint.gateway import Gateway, build_gateway
from termbridge.normalizer.policy import CommandRejected
from termbridge.process.runner import ProcessRunnerError
from termbridge.store.base import LOCAL_IDENTITY

logger = logging.getLogger(__name__)


class EndpointStatus(BaseModel):
    status: str = "ok"
    store: str = Field(description="Variable store backend in use")


class HelpInfo(BaseModel):
    help: str


def client_identity(request: Request) -> str:
    return request.client.host if request.client else LOCAL_IDENTITY


def create_app(settings: Settings | None = None, gateway: Gateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.gateway is None:
            app.state.gateway = build_gateway(settings)
        logger.info("Endpoint started on %s:%d", settings.endpoint.host, settings.endpoint.port)
        yield
        logger.info("Endpoint stopped")

    app = FastAPI(
        title="termbridge Endpoint",
        description="JSON-RPC endpoint for remote command, REPL and package tool execution",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.gateway = gateway
    app.state.settings = settings

    async def require_client(request: Request) -> str:
        """Resolve the caller and enforce the whitelist when the endpoint is closed."""
        identity = client_identity(request)
        endpoint = settings.endpoint
        if not endpoint.enabled and identity not in endpoint.whitelists:
            logger.info("Refused client %s", identity)
            raise HTTPException(status_code=403, detail="Forbidden")
        return identity

    @app.get("/health")
    async def health_check() -> EndpointStatus:
        return EndpointStatus(status="ok", store=settings.repl.store)

    @app.get("/help")
    async def help_info(identity: str = Depends(require_client)) -> HelpInfo:
        g: Gateway = app.state.gateway
        try:
            result = await g.call(settings.normalizer.default_command, [], identity)
        except (CommandRejected, ConsoleError, ProcessRunnerError) as e:
            return HelpInfo(help=f"Terminal initialization failed: {e}")
        if not result.succeeded:
            reason = result.error or result.transcript
            return HelpInfo(help=f"Terminal initialization failed: {reason}")
        return HelpInfo(help=result.transcript)

    @app.post("/endpoint", response_model_exclude_none=True)
    async def endpoint(
        body: RpcRequest, identity: str = Depends(require_client)
    ) -> RpcResponse:
        g: Gateway = app.state.gateway
        return await g.handle(body, identity)

    @app.post("/endpoint/stream")
    async def endpoint_stream(
        body: RpcRequest, identity: str = Depends(require_client)
    ) -> StreamingResponse:
        g: Gateway = app.state.gateway
        try:
            g.validate(body.method, body.params)
        except CommandRejected as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return StreamingResponse(
            _stream_lines(g, body, identity), media_type="text/plain; charset=utf-8"
        )

    return app


async def _stream_lines(gateway: Gateway, body: RpcRequest, identity: str) -> AsyncIterator[str]:
    """Yield transcript lines while the gateway call is still running."""
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    async def produce() -> None:
        try:
            await gateway.call(body.method, body.params, identity, on_line=queue.put_nowait)
        except Exception as e:
            logger.exception("Streamed request %r failed", body.method)
            queue.put_nowait(f"Internal Error: {e}")
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(produce())
    try:
        while True:
            line = await queue.get()
            if line is None:
                break
            yield line + "\n"
        await task
    finally:
        # Client went away; cancelling the call kills any running child
        if not task.done():
            task.cancel()


def main() -> None:
    """Entry point for running the endpoint server standalone."""
    from termbridge.utils.logging import setup_logging

    settings = load_settings()
    setup_logging(settings.logging)
    app = create_app(settings)
    uvicorn.run(app, host=settings.endpoint.host, port=settings.endpoint.port)


if __name__ == "__main__":
    main()
