from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supported_versions.application import SupportedVersionsRuntime, build_runtime
from supported_versions.routes import servers


def create_app(runtime: SupportedVersionsRuntime | None = None) -> FastAPI:
    runtime = runtime or build_runtime()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await runtime.aclose()

    app = FastAPI(title="Supported Versions API", version="0.1.0", lifespan=lifespan)
    app.state.runtime = runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=runtime.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(servers.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Supported Versions API",
                "docs": "/docs",
                "health": "/api/servers",
            }
        )

    return app


app = create_app()
