"""
Admin service - admin accounts, login and bearer-token resolution.

DESIGN NOTE:
- Admin accounts live in a process-global registry, NOT in the document
  store; the registry is rebuilt (and seed passwords re-hashed) on restart
- Two kinds of bearer tokens are accepted: random guest tokens issued for the
  shared guest password, and signed JWTs issued by /auth/login
- Guest tokens are checked first, then JWTs
"""

from datetime import timedelta
from typing import Dict, List, Optional
import logging

import jwt

from civicsense.core.exceptions import AuthError, ValidationError
from civicsense.core.settings import settings
from civicsense.models.admin import (
    ALL_PERMISSIONS,
    GUEST_PERMISSIONS,
    MODERATOR_PERMISSIONS,
    AdminContext,
    AdminRole,
)
from civicsense.utils.firestore_helpers import to_datetime, utc_now
from civicsense.utils.security import (
    create_access_token,
    decode_access_token,
    generate_guest_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

GUEST_ADMIN_ID = "guest"
GUEST_PROFILE = {
    "first_name": "Guest",
    "last_name": "Admin",
    "position": "Guest Administrator",
}


def _seed_admins() -> List[Dict]:
    now = utc_now()
    return [
        {
            "id": "1",
            "username": "admin",
            "email": "admin@civicsense.local",
            "password": hash_password(settings.ADMIN_PASSWORD),
            "role": AdminRole.SUPER_ADMIN.value,
            "permissions": list(ALL_PERMISSIONS),
            "profile": {
                "first_name": "System",
                "last_name": "Administrator",
                "position": "Super Administrator",
            },
            "is_active": True,
            "guest_token": None,
            "login_attempts": 0,
            "lock_until": None,
            "last_login": None,
            "created_at": now,
        },
        {
            "id": "2",
            "username": "moderator",
            "email": "moderator@civicsense.local",
            "password": hash_password(settings.MODERATOR_PASSWORD),
            "role": AdminRole.MODERATOR.value,
            "permissions": list(MODERATOR_PERMISSIONS),
            "profile": {
                "first_name": "Report",
                "last_name": "Moderator",
                "position": "Report Moderator",
            },
            "is_active": True,
            "guest_token": None,
            "login_attempts": 0,
            "lock_until": None,
            "last_login": None,
            "created_at": now,
        },
    ]


def public_admin(admin: Dict) -> Dict:
    """Admin fields safe to return to clients (never the password hash)."""
    return {
        "id": admin["id"],
        "username": admin["username"],
        "email": admin.get("email"),
        "role": admin["role"],
        "permissions": list(admin.get("permissions") or []),
        "profile": admin.get("profile"),
        "last_login": admin.get("last_login"),
    }


class AdminRegistry:
    """
    Process-global admin store with login and token resolution.
    """

    def __init__(self):
        self.admins: List[Dict] = _seed_admins()
        logger.info(f"🔐 Admin registry initialized with {len(self.admins)} accounts")

    def get_by_id(self, admin_id: str) -> Optional[Dict]:
        return next((a for a in self.admins if a["id"] == admin_id), None)

    def find_by_login(self, username_or_email: str) -> Optional[Dict]:
        return next(
            (
                a for a in self.admins
                if a.get("is_active") and username_or_email in (a["username"], a.get("email"))
            ),
            None,
        )

    def login(self, username: Optional[str], password: Optional[str]) -> Dict:
        """
        Authenticate with username (or email) and password.

        Returns:
            {"token": <JWT>, "admin": <public admin>}

        Raises:
            ValidationError: Missing username or password
            AuthError: Unknown account, wrong password or locked account
        """
        if not username or not password:
            raise ValidationError("Username and password are required")

        admin = self.find_by_login(username)
        if admin is None:
            logger.warning(f"⚠️ Failed admin login for: {username}")
            raise AuthError("Invalid credentials")

        if self.is_locked(admin):
            logger.warning(f"🔒 Login refused for locked account: {admin['username']}")
            raise AuthError("Account is temporarily locked")

        if not verify_password(password, admin.get("password")):
            self._record_failed_login(admin)
            raise AuthError("Invalid credentials")

        admin["login_attempts"] = 0
        admin["lock_until"] = None
        admin["last_login"] = utc_now()
        token = create_access_token({
            "id": admin["id"],
            "username": admin["username"],
            "role": admin["role"],
            "permissions": admin["permissions"],
        })

        logger.info(f"✅ Admin login successful: {admin['username']}")
        return {"token": token, "admin": public_admin(admin)}

    @staticmethod
    def is_locked(admin: Dict) -> bool:
        lock_until = to_datetime(admin.get("lock_until"))
        return lock_until is not None and lock_until > utc_now()

    def _record_failed_login(self, admin: Dict):
        """Count a wrong password; lock the account once LOGIN_MAX_ATTEMPTS is reached."""
        admin["login_attempts"] = admin.get("login_attempts", 0) + 1
        logger.warning(
            f"⚠️ Failed admin login for: {admin['username']} (attempt {admin['login_attempts']})"
        )
        if admin["login_attempts"] >= settings.LOGIN_MAX_ATTEMPTS:
            admin["lock_until"] = utc_now() + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
            logger.warning(
                f"🔒 Account {admin['username']} locked for {settings.LOGIN_LOCK_MINUTES} minutes"
            )

    def issue_guest_token(self, password: Optional[str]) -> Dict:
        """
        Exchange the shared guest password for a random guest token.

        The guest admin record is created on first use; each call replaces the
        previous guest token.
        """
        if password != settings.GUEST_PASSWORD:
            raise AuthError("Invalid guest password")

        token = generate_guest_token()
        expires_at = utc_now() + timedelta(hours=settings.GUEST_TOKEN_HOURS)
        guest_token = {"token": token, "expires_at": expires_at, "is_active": True}

        guest = self.get_by_id(GUEST_ADMIN_ID)
        if guest is None:
            guest = {
                "id": GUEST_ADMIN_ID,
                "username": "guest",
                "email": None,
                "password": None,
                "role": AdminRole.GUEST.value,
                "permissions": list(GUEST_PERMISSIONS),
                "profile": dict(GUEST_PROFILE),
                "is_active": True,
                "guest_token": guest_token,
                "last_login": None,
                "created_at": utc_now(),
            }
            self.admins.append(guest)
            logger.info("🔐 Created guest admin account")
        else:
            guest["guest_token"] = guest_token
        guest["last_login"] = utc_now()

        logger.info(f"🎫 Guest token generated: {token[:8]}...")
        return {"token": token, "expires_at": expires_at, "admin": public_admin(guest)}

    def _find_by_guest_token(self, token: str) -> Optional[Dict]:
        now = utc_now()
        for admin in self.admins:
            guest_token = admin.get("guest_token")
            if (
                guest_token
                and guest_token.get("is_active")
                and guest_token.get("token") == token
                and to_datetime(guest_token.get("expires_at")) > now
            ):
                return admin
        return None

    def resolve_token(self, token: Optional[str]) -> Dict:
        """
        Resolve a bearer token to an active admin record.

        Raises:
            AuthError: Missing, invalid or expired token
        """
        if not token:
            raise AuthError("Access denied. No token provided.")

        guest = self._find_by_guest_token(token)
        if guest is not None:
            return guest

        try:
            claims = decode_access_token(token)
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        admin = self.get_by_id(str(claims.get("id")))
        if admin is None or not admin.get("is_active"):
            raise AuthError("Invalid token")
        return admin

    def authenticate(self, token: Optional[str]) -> AdminContext:
        admin = self.resolve_token(token)
        return AdminContext(
            id=admin["id"],
            username=admin["username"],
            role=admin["role"],
            permissions=admin.get("permissions") or [],
        )

    def logout(self, token: Optional[str]) -> Dict:
        """Revoke a guest token; JWTs simply expire."""
        if not token:
            raise ValidationError("No token provided")

        for admin in self.admins:
            guest_token = admin.get("guest_token")
            if guest_token and guest_token.get("token") == token:
                guest_token["is_active"] = False
                logger.info(f"🎫 Guest token revoked: {token[:8]}...")
                break
        return {"message": "Logged out successfully"}


# Global registry instance (singleton)
_admin_registry: Optional[AdminRegistry] = None


def get_admin_registry() -> AdminRegistry:
    """Get or create the global admin registry."""
    global _admin_registry
    if _admin_registry is None:
        _admin_registry = AdminRegistry()
    return _admin_registry


def reset_admin_registry():
    """Rebuild the registry from seed accounts (drops guest tokens and logins)."""
    global _admin_registry
    _admin_registry = None
