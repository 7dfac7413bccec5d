"""Admin directory - authoritative, uncached lookup of admin profiles.

SECURITY: a caller's own claims about its role are untrusted input. Every
check reads the profile from the document store; nothing is taken from the
document under validation and nothing is cached between calls.
"""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.policy.documents import AdminProfile, decode_document, parse_stored_admin_profile
from app.policy.errors import Inactive, MalformedInput, NotFound, StoreUnavailable
from app.policy.store import DocumentStore
from app.utils.logger import logger


class AdminDirectory:
    """Read-through accessor over the ``admin_profiles`` collection."""

    def __init__(self, store: DocumentStore, collection: Optional[str] = None):
        self.store = store
        self.collection = collection or settings.ADMIN_PROFILES_COLLECTION

    def find_admin(self, principal: str) -> Optional[AdminProfile]:
        """Return the stored profile for ``principal`` regardless of activity, or None.

        Raises:
            MalformedInput: the stored record cannot be decoded.
            StoreUnavailable: the document store could not be read.
        """
        if not principal:
            return None

        try:
            raw = self.store.get(self.collection, principal)
        except SQLAlchemyError as exc:
            logger.error(
                "Admin directory read failed",
                extra={"collection": self.collection, "key": principal, "error": str(exc)},
            )
            raise StoreUnavailable(
                f"Admin directory is unavailable; cannot verify admin '{principal}'"
            ) from exc

        if raw is None:
            return None

        try:
            data = decode_document(raw, label="admin profile")
        except MalformedInput as exc:
            raise MalformedInput(f"Stored admin profile for '{principal}' is corrupt: {exc.reason}") from exc

        profile, defaulted = parse_stored_admin_profile(data, principal)
        if defaulted:
            logger.warning(
                f"Admin profile {principal} has missing or invalid fields; least-privilege defaults applied",
                extra={"admin_id": principal, "metadata": {"defaulted": defaulted}},
            )
        return profile

    def load_active_admin(self, principal: str) -> AdminProfile:
        """Return the active profile for ``principal``.

        Raises:
            NotFound: no profile is stored for the principal.
            Inactive: the profile exists but is deactivated.
        """
        profile = self.find_admin(principal)
        if profile is None:
            raise NotFound(f"Admin profile not found for user: {principal}")
        if not profile.is_active:
            raise Inactive(f"Admin account '{principal}' is inactive")
        return profile

    def is_empty(self) -> bool:
        """True while no admin profile has ever been stored (bootstrap window)."""
        try:
            return self.store.is_collection_empty(self.collection)
        except SQLAlchemyError as exc:
            logger.error(
                "Admin directory emptiness check failed",
                extra={"collection": self.collection, "error": str(exc)},
            )
            raise StoreUnavailable("Admin directory is unavailable; cannot evaluate bootstrap") from exc
