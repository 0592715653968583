"""Run the FastAPI app for the content assistant."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.content_backend import get_backend_client
from src.routers import chat_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_backend_client().aclose()


app = FastAPI(title="Content Assistant", version="0.1.0", lifespan=lifespan)
app.include_router(chat_router)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed bodies in the same {"error": ...} shape as the routes."""
    details = "; ".join(str(err.get("msg", "")) for err in exc.errors())
    return JSONResponse(status_code=422, content={"error": f"Invalid request: {details}"})


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
