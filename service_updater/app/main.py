"""
Updater service: edge cache in front of the update distribution origin.
"""

from typing import Callable, Dict, Optional

import httpx
from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import UpdaterException
from .caching import UpdateCacheStore, blob_store_for, create_kv_store
from .freshness import FreshnessEngine, UpdaterEnv
from .models import UpdateApiResponse, VersionData


ROUTE_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


def envelope(response: UpdateApiResponse) -> JSONResponse:
    """Envelope responses are always HTTP 200; the outcome lives in ``code``."""
    return JSONResponse(status_code=200, content=response.to_payload())


class UpdaterService(BaseService):
    """Updater service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        super().__init__("updater", 8000, config=config)

        self.kv_store = create_kv_store(
            self.config.cache_backend,
            self.config.redis_url,
            namespace=self.config.cache_namespace,
            max_value_size=self.config.cache_max_value_size,
        )
        cache = None
        if self.kv_store is not None:
            cache = UpdateCacheStore(self.kv_store, blob_store_for(self.kv_store, self.config.cache_chunk_size))

        self.env = UpdaterEnv(host_url=self.config.host_url, cache=cache)
        self.engine = FreshnessEngine(
            self.config.cache_timeout_ms,
            refresh_on_confirm=self.config.refresh_on_confirm,
            clock=clock,
            metrics=self.metrics,
            transport=transport,
            origin_timeout=self.config.origin_timeout_seconds,
        )

        self.logger.info(
            "Updater configured",
            origin=self.env.host_url,
            cache_backend=self.config.cache_backend,
            cache_timeout_ms=self.config.cache_timeout_ms,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            if self.kv_store is not None:
                await self.kv_store.close()

        self._setup_updater_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.updater_service = self

    def get_env(self) -> UpdaterEnv:
        """Dependency returning the read-only request environment."""
        return self.env

    def _setup_updater_routes(self):
        """Set up the update feed routes."""

        @self.app.api_route("/version", methods=ROUTE_METHODS)
        async def get_version(env: UpdaterEnv = Depends(self.get_env)):
            """Current version of the update feed."""
            version = await self.engine.get_version(env)
            if version is None:
                return envelope(UpdateApiResponse.no_data())
            return envelope(UpdateApiResponse.success(VersionData(v=version)))

        @self.app.api_route("/get", methods=ROUTE_METHODS)
        async def get_content(env: UpdaterEnv = Depends(self.get_env)):
            """Current version with payload and signature."""
            content = await self.engine.get_content(env)
            if content is None:
                return envelope(UpdateApiResponse.no_data())
            return envelope(UpdateApiResponse.success(content))

        @self.app.api_route("/{pathname:path}", methods=ROUTE_METHODS)
        async def not_found(request: Request):
            """Any other path."""
            return envelope(UpdateApiResponse.not_found(request.url.path))

    def _render_service_error(self, exc: UpdaterException) -> JSONResponse:
        return envelope(UpdateApiResponse.failure(exc.message))

    def _render_unexpected_error(self, exc: Exception) -> JSONResponse:
        return envelope(UpdateApiResponse.failure("Internal server error"))

    async def _check_dependencies(self) -> Dict[str, str]:
        if self.kv_store is None:
            return {"cache": "disabled"}
        return {"cache": "ok" if await self.kv_store.ping() else "error"}


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create the Updater FastAPI application."""
    return UpdaterService(config, **kwargs).app


def main():
    """Run the Updater service."""
    service = UpdaterService(get_config("updater", 8000))
    service.run()


if __name__ == "__main__":
    main()
