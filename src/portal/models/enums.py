"""Shared enums for models."""

from enum import Enum


class UserRole(str, Enum):
    """Top-level portal role."""

    SUPER_ADMIN = "super_admin"
    CONSULTANCY_ADMIN = "consultancy_admin"
    CONSULTANCY_STAFF = "consultancy_staff"
    STUDENT = "student"
    COUNSELOR = "counselor"


class UserSubRole(str, Enum):
    """Specialisation of consultancy staff."""

    RECEPTIONIST = "receptionist"
    DOCUMENT_OFFICER = "document_officer"
    MANAGER = "manager"
    COUNSELOR = "counselor"


class RevokeReason(str, Enum):
    """Why a refresh token stopped being usable."""

    ROTATED = "rotated"
    LOGOUT = "logout"
    LOGOUT_ALL_DEVICES = "logout_all_devices"
    SESSION_REVOKED = "session_revoked"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGE = "password_change"


class SessionEndReason(str, Enum):
    """Why a session ended."""

    LOGOUT = "logout"
    EXPIRED = "expired"
    REVOKED = "revoked"
    REPLACED = "replaced"
    REVOKED_ALL_DEVICES = "revoked_all_devices"


class DeviceType(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"
    BOT = "bot"
