"""FastAPI dependencies. Objects are built once in create_app() and live on app.state."""

from fastapi import Request

from catalog_api.core.config import Settings
from catalog_api.core.refresh import RefreshCoordinator
from catalog_api.core.store import JsonItemStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> JsonItemStore:
    return request.app.state.store


def get_coordinator(request: Request) -> RefreshCoordinator:
    return request.app.state.coordinator
