"""Composition root binding the shared pool and settings into every service."""

import copy

from conduit.common.config import AppSettings
from conduit.common.db import ConnectionPool
from conduit.services.articles.service import ArticlesService, TagsService
from conduit.services.comments.service import CommentsService
from conduit.services.users.service import ProfilesService, UsersService


SERVICE_NAMES: tuple[str, ...] = ("users", "profiles", "articles", "tags", "comments")


class ServiceRegistry:
    """Holds one instance of each domain service.

    Construction only wires objects together: no connection is checked out and
    nothing can fail. Every service sees the same session factory and settings
    object; `clone()` hands out another handle to those same instances.
    """

    def __init__(self, pool: ConnectionPool, settings: AppSettings) -> None:
        self.pool = pool
        self.settings = settings
        session_factory = pool.session_factory
        self.users = UsersService(session_factory, settings)
        self.profiles = ProfilesService(session_factory, settings)
        self.articles = ArticlesService(session_factory, settings)
        self.tags = TagsService(session_factory, settings)
        self.comments = CommentsService(session_factory, settings)

    def service(self, name: str):
        """Look up a service by its registry name."""

        if name not in SERVICE_NAMES:
            raise KeyError(f"unknown service: {name}")
        return getattr(self, name)

    def services(self) -> dict[str, object]:
        return {name: getattr(self, name) for name in SERVICE_NAMES}

    def clone(self) -> "ServiceRegistry":
        """Shallow copy sharing the pool, settings and service instances."""

        return copy.copy(self)
