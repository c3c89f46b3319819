#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""API routes module for PD Agent."""
from fastapi import FastAPI

from models import SetUpRequest, TearDownRequest
from orchestration import PersistentDiskPlugin
from .handlers import APIHandlers


def register_routes(app: FastAPI, plugin: PersistentDiskPlugin) -> None:
    """Register all API routes with the FastAPI application."""
    handlers = APIHandlers(plugin)

    # Health and info endpoints
    @app.get("/healthz")
    def healthz():
        return handlers.healthz()

    @app.get("/v1/version")
    def v1_version():
        return handlers.v1_version()

    @app.get("/v1/access-modes")
    def v1_access_modes():
        return handlers.v1_access_modes()

    # Volume endpoints
    @app.post("/v1/volumes/setup")
    def v1_set_up(req: SetUpRequest):
        return handlers.v1_set_up(req)

    @app.post("/v1/volumes/teardown")
    def v1_tear_down(req: TearDownRequest):
        return handlers.v1_tear_down(req)

    @app.get("/v1/volumes/global-path")
    def v1_global_path(pd_name: str):
        return handlers.v1_global_path(pd_name)
