from __future__ import annotations

import os

from pydantic import BaseModel, Field

LISTEN_PORT = 7654
RTSP_PORT = 554


class ScanSettings(BaseModel):
    max_workers: int = Field(256, ge=1, description="Upper bound on concurrent probes per subnet")
    probe_timeout: float = Field(2.0, gt=0, description="Seconds allowed for one TCP connect")
    probe_port: int = Field(RTSP_PORT, ge=1, le=65535)


def load_settings() -> ScanSettings:
    values: dict[str, str] = {}
    if os.environ.get("SCAN_MAX_WORKERS"):
        values["max_workers"] = os.environ["SCAN_MAX_WORKERS"]
    if os.environ.get("SCAN_PROBE_TIMEOUT"):
        values["probe_timeout"] = os.environ["SCAN_PROBE_TIMEOUT"]
    return ScanSettings(**values)


def cors_origins() -> list[str]:
    raw_origins = os.environ.get("FRONTEND_ORIGINS", "")
    if not raw_origins:
        return ["*"]
    return [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
