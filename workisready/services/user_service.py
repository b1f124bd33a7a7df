"""
workisready/services/user_service.py

Purpose: Accounts and sessions

- Registration with email verification, resend of the link
- Password reset by emailed token
- Login (verified or admin-approved accounts only), logout
- Bearer token resolution for protected routes
- Profile edits with avatar upload, per-user stats
- Admin account management (single and bulk)
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from utils.time_utils import days_since, expires_in, utcnow
from utils.validation_utils import to_object_id
from workisready.core.config import settings
from workisready.core.exceptions import (
    AccountNotVerifiedError,
    AuthenticationError,
    ResourceNotFoundError,
    ValidationError,
)
from workisready.core.logging import LogContext, get_logger
from workisready.core.security import generate_token, hash_password, verify_password
from workisready.models.session import Session
from workisready.models.user import UserDocument, public_user
from workisready.services.email_service import EmailService
from workisready.services.media_service import AVATARS, MediaStorage, has_upload

logger = get_logger(__name__)

PROFILE_FIELDS = ("fname", "sname", "oname", "phone", "whatsapp", "location", "region", "district")
ACCOUNT_EXISTS_MESSAGE = "User already exists"
MIN_PASSWORD_LENGTH = 6

# Fields an admin may edit on an account
ADMIN_EDITABLE_FIELDS = ("name", "email", "phone", "whatsapp", "user_type")


def display_name(fname: str, sname: str, fallback: str) -> str:
    name = " ".join(part.strip() for part in (fname, sname) if part and part.strip())
    return name or fallback


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class UserService:
    def __init__(
        self,
        users,
        sessions,
        tasks=None,
        email: Optional[EmailService] = None,
        media: Optional[MediaStorage] = None,
    ):
        self.users = users
        self.sessions = sessions
        self.tasks = tasks
        self.email = email or EmailService()
        self.media = media or MediaStorage()

    async def _find(self, user_id: str) -> Dict[str, Any]:
        oid = to_object_id(user_id)
        user = await self.users.find_one({"_id": oid}) if oid else None
        if not user:
            raise ResourceNotFoundError("User not found")
        return user

    async def _insert(self, document: UserDocument) -> Dict[str, Any]:
        if await self.users.find_one({"email": document.email}, {"_id": 1}):
            raise ValidationError(ACCOUNT_EXISTS_MESSAGE)
        data = document.to_mongo()
        try:
            result = await self.users.insert_one(data)
        except DuplicateKeyError as e:
            # email raced, or phone/whatsapp already belongs to someone
            raise ValidationError("An account with these details already exists") from e
        data["_id"] = result.inserted_id
        return data

    async def _update(self, oid, update: Dict[str, Any]) -> Dict[str, Any]:
        """Applies ``update`` and returns the new document; 404 if it vanished meanwhile."""
        updated = await self.users.find_one_and_update(
            {"_id": oid}, update, return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise ResourceNotFoundError("User not found")
        return updated

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str, **profile: Any) -> Dict[str, Any]:
        """
        Creates an unverified account and emails a verification link.
        The email goes out in the background.
        """
        _check_password(password)

        now = utcnow()
        token = generate_token()
        document = UserDocument(
            name=name,
            email=email,
            password_hash=hash_password(password),
            verification_token=token,
            verification_token_expires=expires_in(hours=settings.VERIFICATION_TOKEN_HOURS),
            created_at=now,
            updated_at=now,
            **profile,
        )
        user = await self._insert(document)
        await self.email.send_verification(user["name"], user["email"], token)

        logger.info(f"User registered: {user['_id']}")
        return public_user(user)

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Checks credentials and opens a session.

        Returns:
            {"token": str, "user": public user}

        Raises:
            AuthenticationError: Unknown email or wrong password
            AccountNotVerifiedError: Neither verified nor approved
        """
        user = await self.users.find_one({"email": (email or "").strip().lower()})
        if not user or not verify_password(password, user.get("password_hash", "")):
            raise AuthenticationError("Invalid email or password")

        if not (user.get("is_verified") or user.get("is_approved") or user.get("role") == "admin"):
            raise AccountNotVerifiedError(
                "Account not verified. Please verify your email or wait for admin approval.",
                details={"isVerified": user.get("is_verified", False), "isApproved": user.get("is_approved", False)},
            )

        now = utcnow()
        session = Session(
            token=generate_token(),
            user_id=str(user["_id"]),
            created_at=now,
            expires_at=expires_in(days=settings.SESSION_TTL_DAYS),
        )
        await self.sessions.insert_one(session.to_mongo())

        with LogContext(user_id=str(user["_id"])):
            logger.info("User logged in")
        return {"token": session.token, "user": public_user(user)}

    async def logout(self, token: str) -> None:
        await self.sessions.delete_one({"token": token})

    async def resolve_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Returns the raw user document behind a bearer token, or None when
        the token is unknown or expired.
        """
        if not token:
            return None
        session = await self.sessions.find_one({"token": token, "expires_at": {"$gt": utcnow()}})
        if not session:
            return None
        return await self.users.find_one({"_id": session["user_id"]})

    async def verify_email(self, token: str) -> Dict[str, Any]:
        user = await self.users.find_one_and_update(
            {"verification_token": token, "verification_token_expires": {"$gt": utcnow()}},
            {
                "$set": {"is_verified": True, "updated_at": utcnow()},
                "$unset": {"verification_token": "", "verification_token_expires": ""},
            },
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise ValidationError("Invalid or expired verification token")
        logger.info(f"Email verified for user {user['_id']}")
        return public_user(user)

    async def resend_verification(self, email: str) -> None:
        """
        Issues a fresh verification link, replacing the previous one.

        Raises:
            ValidationError: No email given, or already verified
            ResourceNotFoundError: No account with that email
        """
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Please provide an email address")
        user = await self.users.find_one({"email": email})
        if not user:
            raise ResourceNotFoundError("User not found with this email")
        if user.get("is_verified"):
            raise ValidationError("Email is already verified")

        token = generate_token()
        await self._update(user["_id"], {"$set": {
            "verification_token": token,
            "verification_token_expires": expires_in(hours=settings.VERIFICATION_TOKEN_HOURS),
            "updated_at": utcnow(),
        }})
        await self.email.send_verification(user["name"], user["email"], token)
        logger.info(f"Verification email re-sent to user {user['_id']}")

    async def forgot_password(self, email: str) -> None:
        """Stores a short-lived reset token and emails the reset link."""
        email = (email or "").strip().lower()
        user = await self.users.find_one({"email": email}) if email else None
        if not user:
            raise ResourceNotFoundError("User not found")

        token = generate_token()
        await self._update(user["_id"], {"$set": {
            "reset_token": token,
            "reset_token_expires": expires_in(minutes=settings.RESET_TOKEN_MINUTES),
        }})
        await self.email.send_password_reset(user["name"], user["email"], token)
        logger.info(f"Password reset requested for user {user['_id']}")

    async def reset_password(self, token: str, password: str, confirm_password: Optional[str] = None) -> None:
        """
        Sets a new password from a valid reset token. The token is single use
        and every open session of the account is closed.
        """
        _check_password(password)
        if confirm_password is not None and confirm_password != password:
            raise ValidationError("Passwords do not match")
        if not token:
            raise ValidationError("Invalid or expired token")

        user = await self.users.find_one_and_update(
            {"reset_token": token, "reset_token_expires": {"$gt": utcnow()}},
            {
                "$set": {"password_hash": hash_password(password), "updated_at": utcnow()},
                "$unset": {"reset_token": "", "reset_token_expires": ""},
            },
            return_document=ReturnDocument.AFTER,
        )
        if not user:
            raise ValidationError("Invalid or expired token")
        await self.sessions.delete_many({"user_id": user["_id"]})
        logger.info(f"Password reset for user {user['_id']}")

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> Dict[str, Any]:
        return public_user(await self._find(user_id))

    async def update_profile(
        self,
        user_id: str,
        fields: Dict[str, Any],
        avatar: Optional[UploadFile] = None,
    ) -> Dict[str, Any]:
        """Saves profile fields immediately; a new avatar replaces the old file."""
        user = await self._find(user_id)
        changes = {name: fields[name] for name in PROFILE_FIELDS if fields.get(name) is not None}

        old_avatar = None
        if has_upload(avatar):
            changes["profile_image"] = await self.media.save(avatar, AVATARS, str(user["_id"]))
            old_avatar = user.get("profile_image") or ""

        merged = {**user, **changes}
        merged["name"] = display_name(merged.get("fname", ""), merged.get("sname", ""), user["name"])
        merged["updated_at"] = utcnow()
        document = UserDocument.model_validate(merged)
        data = document.to_mongo()
        data.pop("_id", None)

        try:
            updated = await self._update(user["_id"], {"$set": data})
        except (DuplicateKeyError, ResourceNotFoundError) as e:
            if "profile_image" in changes:
                await self.media.delete(changes["profile_image"])
            if isinstance(e, DuplicateKeyError):
                raise ValidationError("Phone or WhatsApp number is already in use") from e
            raise

        if old_avatar:
            await self.media.delete(old_avatar)
        return public_user(updated)

    async def stats(self, user: Dict[str, Any]) -> Dict[str, Any]:
        client_id = user["_id"]
        total = open_tasks = completed = 0
        if self.tasks is not None:
            total = await self.tasks.count_documents({"client_id": client_id})
            open_tasks = await self.tasks.count_documents({"client_id": client_id, "status": "open"})
            completed = await self.tasks.count_documents({"client_id": client_id, "status": "completed"})
        return {
            "totalTasks": total,
            "openTasks": open_tasks,
            "completedTasks": completed,
            "joined": user.get("created_at"),
            "daysOnPlatform": days_since(user.get("created_at")),
        }

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def list_users(self) -> List[Dict[str, Any]]:
        cursor = self.users.find().sort("created_at", DESCENDING)
        return [public_user(user) for user in await cursor.to_list(length=None)]

    async def create_user(self, name: str, email: str, password: str, **profile: Any) -> Dict[str, Any]:
        """Admin-created accounts are verified and approved from the start."""
        now = utcnow()
        document = UserDocument(
            name=name,
            email=email,
            password_hash=hash_password(password),
            is_verified=True,
            is_approved=True,
            last_approved_at=now,
            created_at=now,
            updated_at=now,
            **profile,
        )
        user = await self._insert(document)
        logger.info(f"Admin created user {user['_id']}")
        return public_user(user)

    async def update_user(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrites name, email, contact numbers and user type.

        Raises:
            ValidationError: Email, phone or WhatsApp taken by another account
        """
        user = await self._find(user_id)
        changes = {name: fields[name] for name in ADMIN_EDITABLE_FIELDS if fields.get(name) is not None}

        document = UserDocument.model_validate({**user, **changes, "updated_at": utcnow()})
        if document.email != user["email"]:
            if await self.users.find_one({"email": document.email, "_id": {"$ne": user["_id"]}}, {"_id": 1}):
                raise ValidationError(ACCOUNT_EXISTS_MESSAGE)
        data = document.to_mongo()
        data.pop("_id", None)

        try:
            updated = await self._update(user["_id"], {"$set": data})
        except DuplicateKeyError as e:
            raise ValidationError("An account with these details already exists") from e
        logger.info(f"Admin updated user {user_id}")
        return public_user(updated)

    async def set_approval(self, user_id: str, approved: bool) -> Dict[str, Any]:
        user = await self._find(user_id)
        changes: Dict[str, Any] = {"is_approved": approved, "updated_at": utcnow()}
        update: Dict[str, Any] = {"$set": changes}
        if approved:
            changes.update(is_verified=True, last_approved_at=utcnow())
            update["$unset"] = {"verification_token": "", "verification_token_expires": ""}
        return public_user(await self._update(user["_id"], update))

    def _selected(self, ids: List[str]) -> list:
        object_ids = [oid for oid in (to_object_id(value) for value in ids) if oid]
        if not object_ids:
            raise ValidationError("No users selected")
        return object_ids

    async def bulk_approve(self, ids: List[str]) -> int:
        now = utcnow()
        result = await self.users.update_many(
            {"_id": {"$in": self._selected(ids)}},
            {
                "$set": {"is_approved": True, "is_verified": True, "last_approved_at": now, "updated_at": now},
                "$unset": {"verification_token": "", "verification_token_expires": ""},
            },
        )
        return result.modified_count

    async def bulk_disapprove(self, ids: List[str]) -> int:
        result = await self.users.update_many(
            {"_id": {"$in": self._selected(ids)}},
            {"$set": {"is_approved": False, "updated_at": utcnow()}},
        )
        return result.modified_count

    async def delete_user(self, user_id: str) -> None:
        user = await self._find(user_id)
        await self.users.delete_one({"_id": user["_id"]})
        await self.sessions.delete_many({"user_id": user["_id"]})
        logger.info(f"User deleted: {user_id}")

    async def bulk_delete(self, ids: List[str]) -> int:
        """Deletes the listed accounts and their sessions. Returns the number deleted."""
        object_ids = self._selected(ids)
        result = await self.users.delete_many({"_id": {"$in": object_ids}})
        await self.sessions.delete_many({"user_id": {"$in": object_ids}})
        logger.info(f"{result.deleted_count} users deleted")
        return result.deleted_count
