from __future__ import annotations

import asyncio
import logging
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from rtsp_scout.discovery import discover_devices
from rtsp_scout.interfaces import EnumerationError
from rtsp_scout.settings import LISTEN_PORT, RTSP_PORT, cors_origins, load_settings

logger = logging.getLogger("rtsp_scout")
logging.basicConfig(level=logging.INFO)

app = FastAPI(title="RTSP Device Discovery API")
settings = load_settings()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next) -> Response:
    start = time.perf_counter()
    client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"
    logger.info("Received request: method=%s path=%s from=%s", request.method, request.url.path, client)
    response = await call_next(request)
    logger.info(
        "Responded: status=%d duration=%.3fs", response.status_code, time.perf_counter() - start
    )
    return response


class HealthResponse(BaseModel):
    status: str
    port: int
    probe_port: int


@app.get("/get_all_onvif_cameras/")
async def get_all_onvif_cameras() -> Response:
    try:
        devices = await asyncio.to_thread(discover_devices, settings)
    except EnumerationError as exc:
        logger.error("Error determining local networks: %s", exc)
        return PlainTextResponse(f"Error determining local networks: {exc}", status_code=500)
    return JSONResponse(devices)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", port=LISTEN_PORT, probe_port=RTSP_PORT)


def run() -> None:
    logger.info("Starting server on :%d...", LISTEN_PORT)
    uvicorn.run(app, host="0.0.0.0", port=LISTEN_PORT)


if __name__ == "__main__":
    run()
