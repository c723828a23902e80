"""User account and profile logic."""

from sqlalchemy import select

from conduit.common.logging import logger
from conduit.services.users.models import Follow, User


class UsersService:
    """Creates and looks up user accounts."""

    def __init__(self, session_factory, settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def create_user(self, username: str, email: str, bio: str = "", image: str | None = None) -> User:
        """Insert one user; usernames and emails are unique."""

        with self.session_factory() as db:
            taken = db.execute(
                select(User).where((User.username == username) | (User.email == email))
            ).first()
            if taken:
                raise ValueError(f"username or email already registered: {username}")
            user = User(username=username, email=email, bio=bio, image=image)
            db.add(user)
            db.commit()
            logger.debug("user created username=%s", username)
            return user

    def get_by_username(self, username: str) -> User | None:
        with self.session_factory() as db:
            return db.execute(select(User).where(User.username == username)).scalar_one_or_none()

    def get_by_email(self, email: str) -> User | None:
        with self.session_factory() as db:
            return db.execute(select(User).where(User.email == email)).scalar_one_or_none()


class ProfilesService:
    """Public profile view and follow relationships."""

    def __init__(self, session_factory, settings) -> None:
        self.session_factory = session_factory
        self.settings = settings

    def get_profile(self, username: str, viewer_id: str | None = None) -> dict | None:
        """Return the public profile for `username`, or None when unknown."""

        with self.session_factory() as db:
            user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
            if user is None:
                return None
            following = False
            if viewer_id is not None:
                following = db.get(Follow, (viewer_id, user.user_id)) is not None
            return {
                "username": user.username,
                "bio": user.bio,
                "image": user.image,
                "following": following,
            }

    def follow(self, follower_id: str, followee_username: str) -> dict:
        """Make `follower_id` follow the named user; following twice is a no-op."""

        with self.session_factory() as db:
            followee = db.execute(
                select(User).where(User.username == followee_username)
            ).scalar_one_or_none()
            if followee is None:
                raise LookupError(f"unknown user: {followee_username}")
            if followee.user_id == follower_id:
                raise ValueError("users cannot follow themselves")
            if db.get(Follow, (follower_id, followee.user_id)) is None:
                db.add(Follow(follower_id=follower_id, followee_id=followee.user_id))
                db.commit()
        return self.get_profile(followee_username, viewer_id=follower_id)
