from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from sqlbridge.api.router import api_router
from sqlbridge.core.config import settings
from sqlbridge.core.database import Database


def create_app(database_url: Optional[str] = None) -> FastAPI:
    # Open the pool when the app starts and close it once everything is done
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.database = Database.from_settings(settings, database_url)
        yield
        await app.state.database.dispose()

    app = FastAPI(title="SQL Bridge API", lifespan=lifespan)

    # Include the master router containing all our endpoints
    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {"message": "Welcome to the SQL Bridge API"}

    return app


app = create_app()
