"""Main FastAPI application."""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from coffee_cashier.api import chat, health, menu, orders, realtime
from coffee_cashier.core.config import settings
from coffee_cashier.core.logging import setup_logging
from coffee_cashier.db.database import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    yield
    # Shutdown
    pass


app = FastAPI(
    title="Coffee Cashier",
    description="Conversational ordering agent for a coffee shop counter",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(chat.router, tags=["chat"])
app.include_router(realtime.router, tags=["realtime"])
app.include_router(orders.router, tags=["orders"])
app.include_router(menu.router, tags=["menu"])


@app.get("/")
async def root():
    return {
        "message": "Coffee Cashier API",
        "version": "0.1.0",
    }


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
