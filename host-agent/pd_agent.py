#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE/2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

import typer
import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api import register_routes
from cli import CLICommands
from config import ConfigManager

# Global variables
logger = logging.getLogger("pd-agent")
logger.setLevel(logging.INFO)
_DEF_HANDLER_SET = False
# Global configuration
AGENT_DEFAULTS: Dict[str, Any] = {}
AGENT_CFG: Dict[str, Any] = {}
# Initialize FastAPI app
app = FastAPI(title="PD Agent", version="1.0.0")


def _apply_logging_from_cfg(cfg: Dict[str, Any]) -> None:
    """Apply logging configuration from agent config."""
    global _DEF_HANDLER_SET
    if _DEF_HANDLER_SET:
        return
    log_cfg = cfg.get("logging") or {}
    level = str(log_cfg.get("level", "INFO")).upper()
    try:
        logger.setLevel(getattr(logging, level))
    except AttributeError:
        logger.setLevel(logging.INFO)
    # Add console handler if not present
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    _DEF_HANDLER_SET = True


def _load_config() -> None:
    global AGENT_CFG, AGENT_DEFAULTS
    AGENT_CFG = ConfigManager({}).load_agent_config()
    AGENT_DEFAULTS = AGENT_CFG.get("defaults", {})
    _apply_logging_from_cfg(AGENT_CFG)


# FastAPI event handlers
@app.on_event("startup")
async def startup_event():
    """Initialize agent on startup."""
    logger.info("Starting PD Agent...")
    if not AGENT_CFG:
        _load_config()
    plugin = ConfigManager(AGENT_DEFAULTS).build_plugin()
    register_routes(app, plugin)
    logger.info("PD Agent started successfully")


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log incoming requests immediately upon receipt."""
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors."""
    logger.error("Validation error: %s", exc)
    return JSONResponse(status_code=422, content={"error": "Validation error", "detail": exc.errors()})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    logger.error("HTTP error: %s", exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# CLI interface
cli = typer.Typer()


@cli.command()
def setup(spec_file: Path):
    """Attach a disk and bind mount it into a pod volume directory."""
    CLICommands(AGENT_DEFAULTS).set_up(spec_file)


@cli.command()
def teardown(spec_file: Path):
    """Unmount a pod volume and detach its disk once unused."""
    CLICommands(AGENT_DEFAULTS).tear_down(spec_file)


@cli.command()
def global_path(pd_name: str):
    """Print the global mount path of a disk."""
    CLICommands(AGENT_DEFAULTS).global_path(pd_name)


@cli.command()
def mount_refs(path: str):
    """List the mount points sharing the device mounted at PATH."""
    CLICommands(AGENT_DEFAULTS).mount_refs(path)


def main():
    """Main entry point."""
    _load_config()
    # Run API by default; set PD_AGENT_MODE=cli to use the local CLI instead
    mode = os.environ.get("PD_AGENT_MODE", "api").lower()
    if mode == "cli":
        cli()
    else:
        uvicorn.run(app, host=AGENT_CFG["bind_host"], port=AGENT_CFG["bind_port"], reload=False)


if __name__ == "__main__":
    main()
