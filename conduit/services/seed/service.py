"""Baseline data for fresh development and test databases.

Seeding goes through the registry's services only and is meant for an empty,
freshly migrated schema. Running it twice fails on the unique usernames.
"""

from dataclasses import dataclass

from conduit.common.errors import SeedError
from conduit.common.logging import logger
from conduit.common.metrics import seed_rows_total


SEED_USERS = [
    {"username": "stallen", "email": "stallen@conduit.dev", "bio": "Writes about backend plumbing."},
    {"username": "zakoooo", "email": "zakoooo@conduit.dev", "bio": "Frontend, mostly."},
]

SEED_ARTICLES = [
    {
        "author": "stallen",
        "title": "How to train your dragon",
        "description": "Ever wonder how?",
        "body": "You have to believe.",
        "tags": ["dragons", "training"],
    },
    {
        "author": "stallen",
        "title": "Connection pools in practice",
        "description": "Sizing, checkout and recycling.",
        "body": "Start small and measure.",
        "tags": ["databases", "python"],
    },
    {
        "author": "zakoooo",
        "title": "Reading CORS errors",
        "description": "What the browser is telling you.",
        "body": "Check the allowed origins first.",
        "tags": ["http", "python"],
    },
]


@dataclass
class SeedSummary:
    users: int = 0
    follows: int = 0
    articles: int = 0
    favorites: int = 0
    comments: int = 0


class SeedService:
    """Populates users, articles, tags, follows, favorites and comments."""

    def __init__(self, registry) -> None:
        self.registry = registry

    def _record(self, summary: SeedSummary, kind: str) -> None:
        setattr(summary, kind, getattr(summary, kind) + 1)
        seed_rows_total.labels(service=self.registry.settings.service_name, kind=kind).inc()

    def _seed(self, summary: SeedSummary) -> None:
        users = {}
        for spec in SEED_USERS:
            users[spec["username"]] = self.registry.users.create_user(**spec)
            self._record(summary, "users")

        self.registry.profiles.follow(users["zakoooo"].user_id, "stallen")
        self._record(summary, "follows")

        slugs = []
        for spec in SEED_ARTICLES:
            article = self.registry.articles.create_article(
                users[spec["author"]].user_id,
                spec["title"],
                spec["description"],
                spec["body"],
                spec["tags"],
            )
            slugs.append(article["slug"])
            self._record(summary, "articles")

        self.registry.articles.favorite(users["zakoooo"].user_id, slugs[0])
        self._record(summary, "favorites")

        for slug in slugs:
            self.registry.comments.add_comment(users["zakoooo"].user_id, slug, "Thanks for writing this up.")
            self._record(summary, "comments")
        self.registry.comments.add_comment(users["stallen"].user_id, slugs[2], "Saved me an afternoon.")
        self._record(summary, "comments")

    def seed(self) -> SeedSummary:
        """Insert the baseline dataset or raise `SeedError`."""

        summary = SeedSummary()
        try:
            self._seed(summary)
        except Exception as exc:
            raise SeedError(f"seeding stopped after {summary}") from exc
        logger.info(
            "seed data created users=%s articles=%s comments=%s",
            summary.users,
            summary.articles,
            summary.comments,
        )
        return summary
