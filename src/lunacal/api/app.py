from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lunacal.api.public import router as public_router
from lunacal.core.config import ServerConfig


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    cfg = config or ServerConfig.from_env()
    app = FastAPI(title="lunacal moonrise calendar")
    app.state.config = cfg
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(public_router)
    return app


app = create_app()
