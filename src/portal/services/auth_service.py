"""Authentication service - login, token rotation, revocation and password flows."""

from dataclasses import asdict, dataclass
from datetime import timedelta
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from src.portal.core.cache import blacklist_token, blacklist_tokens, get_blacklist_reason
from src.portal.core.config import get_settings
from src.portal.core.device import parse_device
from src.portal.core.exceptions import (
    AccountLocked,
    InvalidCredentials,
    InvalidResetToken,
    InvalidToken,
    NoRefreshToken,
    RefreshTokenExpired,
    SessionNotFound,
    TokenRevoked,
    UserNotFound,
)
from src.portal.core.logging import get_logger
from src.portal.core.permissions import resolve_permissions
from src.portal.core.security import (
    DUMMY_PASSWORD_HASH,
    create_access_token,
    create_refresh_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from src.portal.models import (
    AuditAction,
    AuditStatus,
    RefreshToken,
    RevokeReason,
    SessionEndReason,
    User,
    UserSession,
)
from src.portal.models.base import utc_now
from src.portal.repositories import RefreshTokenRepository, SessionRepository, UserRepository
from src.portal.services.audit_service import AuditService

logger = get_logger(__name__)

MAX_USER_AGENT_LENGTH = 500


@dataclass(frozen=True)
class AuthResult:
    """Credentials issued by a successful login, refresh or password reset."""

    access_token: str
    refresh_token: str
    user: User
    session_id: UUID


class AuthService:
    """Authentication service.

    Every state change that touches a refresh token and its session is made in
    one transaction on ``session``, so the two rows can never disagree.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        token_repo: RefreshTokenRepository,
        session_repo: SessionRepository,
        session: AsyncSession,
        audit: AuditService,
    ):
        self.user_repo = user_repo
        self.token_repo = token_repo
        self.session_repo = session_repo
        self.session = session
        self.audit = audit

    # --- Login ---

    async def login(
        self,
        email: str,
        password: str,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Authenticate with email and password.

        Raises:
            InvalidCredentials: unknown email or wrong password (indistinguishable)
            AccountLocked: account is locked; the password is not checked
        """
        email = email.lower()
        user = await self.user_repo.get_by_email(email)

        if user is None:
            # Same Argon2 cost as a real check so response time does not reveal the email
            verify_password(password, DUMMY_PASSWORD_HASH)
            await self.audit.emit(
                AuditAction.LOGIN_FAILED,
                user_email=email,
                status=AuditStatus.FAILURE,
                status_code=401,
                error_message="Unknown email",
            )
            raise InvalidCredentials()

        now = utc_now()
        if user.is_locked(now):
            await self.audit.emit(
                AuditAction.LOGIN_FAILED,
                user_id=user.id,
                user_email=user.email,
                status=AuditStatus.FAILURE,
                status_code=401,
                error_message="Account locked",
            )
            await self.audit.emit(
                AuditAction.ACCOUNT_LOCKED,
                user_id=user.id,
                user_email=user.email,
                status=AuditStatus.WARNING,
                status_code=401,
                details={"lock_until": user.lock_until.isoformat() if user.lock_until else None},
            )
            raise AccountLocked(lock_until=user.lock_until)

        if not verify_password(password, user.hashed_password):
            await self._record_failed_login(user)
            raise InvalidCredentials()

        was_locked = user.lock_until is not None
        try:
            if user.login_attempts or user.lock_until is not None:
                await self.user_repo.reset_login_state(user.id)
            refresh_token, db_token, user_session = await self._issue(user, ip, user_agent)
            await self.session.commit()
            await self.session.refresh(user)
        except Exception:
            await self.session.rollback()
            raise

        if was_locked:
            await self.audit.emit(
                AuditAction.ACCOUNT_UNLOCKED,
                user_id=user.id,
                user_email=user.email,
            )
        await self.audit.emit(
            AuditAction.LOGIN,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            details={
                "refresh_token_id": str(db_token.id),
                "session_id": str(user_session.id),
                "device_type": user_session.device_type,
            },
        )
        logger.info("User logged in", user_id=str(user.id), session_id=str(user_session.id))

        return AuthResult(
            access_token=self._access_token(user, user_session.id),
            refresh_token=refresh_token,
            user=user,
            session_id=user_session.id,
        )

    async def _record_failed_login(self, user: User) -> None:
        settings = get_settings()
        try:
            locked = await self.user_repo.register_failed_login(
                user.id,
                max_attempts=settings.max_login_attempts,
                lockout=timedelta(minutes=settings.lockout_minutes),
            )
            await self.session.commit()
            await self.session.refresh(user)
        except Exception:
            await self.session.rollback()
            raise

        await self.audit.emit(
            AuditAction.LOGIN_FAILED,
            user_id=user.id,
            user_email=user.email,
            status=AuditStatus.FAILURE,
            status_code=401,
            error_message="Invalid password",
            details={"login_attempts": user.login_attempts},
        )
        if locked:
            logger.warning(
                "Account locked after repeated failed logins",
                user_id=str(user.id),
                lock_until=user.lock_until.isoformat() if user.lock_until else None,
            )
            await self.audit.emit(
                AuditAction.ACCOUNT_LOCKED,
                user_id=user.id,
                user_email=user.email,
                status=AuditStatus.WARNING,
                status_code=401,
                details={
                    "login_attempts": user.login_attempts,
                    "lock_until": user.lock_until.isoformat() if user.lock_until else None,
                },
            )

    # --- Refresh ---

    async def refresh(
        self,
        refresh_token: str | None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Rotate a refresh token: revoke it and issue a new token and session.

        Rotation is single-use. The revoke is a conditional UPDATE, so when two
        requests race on the same token exactly one of them succeeds.

        Raises:
            NoRefreshToken, InvalidToken, TokenRevoked, RefreshTokenExpired, UserNotFound
        """
        if not refresh_token:
            raise NoRefreshToken()

        token_hash = hash_token(refresh_token)

        # Fast path: Redis knows about recently revoked tokens
        blacklisted_reason = await get_blacklist_reason(token_hash)
        if blacklisted_reason is not None:
            if blacklisted_reason == RevokeReason.ROTATED.value:
                await self._report_token_reuse(await self.token_repo.get_by_hash(token_hash))
            raise TokenRevoked()

        db_token = await self.token_repo.get_by_hash(token_hash)
        if db_token is None:
            raise InvalidToken("Invalid refresh token")
        if db_token.is_revoked:
            if db_token.revoked_reason == RevokeReason.ROTATED.value:
                await self._report_token_reuse(db_token)
            raise TokenRevoked()
        if db_token.is_expired():
            raise RefreshTokenExpired()

        user = await self.user_repo.get_by_id(db_token.user_id)
        if user is None:
            raise UserNotFound()

        # Rollback expires loaded instances; keep plain ids for the race log
        user_id, token_id = str(user.id), str(db_token.id)
        try:
            new_token_id = uuid4()
            rotated = await self.token_repo.revoke_if_active(
                db_token.id,
                RevokeReason.ROTATED,
                ip=ip,
                replaced_by_token_id=new_token_id,
            )
            if not rotated:
                await self.session.rollback()
                logger.warning(
                    "Concurrent refresh lost rotation race",
                    user_id=user_id,
                    token_id=token_id,
                )
                raise TokenRevoked()

            await self.session_repo.end_for_tokens([db_token.id], SessionEndReason.REPLACED)
            new_refresh_token, new_db_token, new_session = await self._issue(
                user, ip, user_agent, token_id=new_token_id
            )
            await self.session.commit()
        except TokenRevoked:
            raise
        except Exception:
            await self.session.rollback()
            raise

        await self._blacklist([token_hash], RevokeReason.ROTATED)
        await self.audit.emit(
            AuditAction.TOKEN_REFRESH,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            details={
                "old_refresh_token_id": str(db_token.id),
                "refresh_token_id": str(new_db_token.id),
                "session_id": str(new_session.id),
            },
        )

        return AuthResult(
            access_token=self._access_token(user, new_session.id),
            refresh_token=new_refresh_token,
            user=user,
            session_id=new_session.id,
        )

    async def _report_token_reuse(self, db_token: RefreshToken | None) -> None:
        """A rotated token came back: someone holds a copy of an old credential."""
        logger.warning(
            "Refresh token reuse detected",
            token_id=str(db_token.id) if db_token else None,
            user_id=str(db_token.user_id) if db_token else None,
        )
        await self.audit.emit(
            AuditAction.TOKEN_REUSE_DETECTED,
            user_id=db_token.user_id if db_token else None,
            status=AuditStatus.WARNING,
            status_code=401,
            resource="refresh_token",
            resource_id=db_token.id if db_token else None,
            details={
                "replaced_by_token_id": (
                    str(db_token.replaced_by_token_id)
                    if db_token and db_token.replaced_by_token_id
                    else None
                ),
            },
        )

    # --- Logout / revocation ---

    async def logout(
        self,
        ip: str | None = None,
        refresh_token: str | None = None,
        session_id: UUID | None = None,
        user_id: UUID | None = None,
    ) -> None:
        """Revoke one refresh token and end its session.

        Identify the session either by the refresh token plaintext or by
        ``session_id`` (which must belong to ``user_id``).

        Raises:
            NoRefreshToken, InvalidToken, TokenRevoked, SessionNotFound
        """
        if refresh_token:
            db_token = await self.token_repo.get_by_hash(hash_token(refresh_token))
            if db_token is None:
                raise InvalidToken("Invalid refresh token")
        elif session_id is not None and user_id is not None:
            user_session = await self.session_repo.get_for_user(user_id, session_id)
            if user_session is None:
                raise SessionNotFound()
            db_token = await self.token_repo.get_by_id(user_session.refresh_token_id)
            if db_token is None:
                raise SessionNotFound()
        else:
            raise NoRefreshToken()

        if db_token.is_revoked:
            raise TokenRevoked()

        revoked = await self._revoke(
            [db_token.id], RevokeReason.LOGOUT, SessionEndReason.LOGOUT, ip
        )
        await self.audit.emit(
            AuditAction.LOGOUT,
            user_id=db_token.user_id,
            status_code=200,
            details={"refresh_token_id": str(db_token.id), "sessions_ended": revoked},
        )

    async def revoke_session(self, user: User, session_id: UUID, ip: str | None = None) -> None:
        """Revoke one of the caller's sessions and its refresh token.

        Sessions of other users are reported as not found.
        """
        user_session = await self.session_repo.get_for_user(user.id, session_id)
        if user_session is None:
            raise SessionNotFound()
        if not user_session.is_active:
            return

        await self._revoke(
            [user_session.refresh_token_id],
            RevokeReason.SESSION_REVOKED,
            SessionEndReason.REVOKED,
            ip,
        )
        await self.audit.emit(
            AuditAction.SESSION_REVOKED,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            resource="session",
            resource_id=user_session.id,
        )

    async def revoke_all_other_sessions(
        self,
        user: User,
        ip: str | None = None,
        current_refresh_token: str | None = None,
        current_session_id: UUID | None = None,
    ) -> int:
        """Revoke every active session of ``user`` except the caller's own.

        Returns:
            Number of sessions revoked
        """
        current_token_id = await self._current_token_id(
            user, current_refresh_token, current_session_id
        )
        count = await self._revoke_others(
            user,
            current_token_id,
            RevokeReason.LOGOUT_ALL_DEVICES,
            SessionEndReason.REVOKED_ALL_DEVICES,
            ip,
        )
        await self.audit.emit(
            AuditAction.LOGOUT_ALL_DEVICES,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            details={"sessions_revoked": count},
        )
        return count

    # --- Password flows ---

    async def forgot_password(self, email: str) -> None:
        """Start a password reset.

        Always completes silently so the response does not reveal whether the
        email is registered. Email delivery is out of scope; the reset link is
        written to the log.
        """
        settings = get_settings()
        email = email.lower()
        user = await self.user_repo.get_by_email(email)
        if user is None:
            await self.audit.emit(
                AuditAction.PASSWORD_RESET_REQUEST,
                user_email=email,
                status=AuditStatus.FAILURE,
                error_message="Unknown email",
            )
            return

        reset_token = generate_reset_token()
        try:
            user.reset_password_token_hash = hash_token(reset_token)
            user.reset_password_expires_at = utc_now() + timedelta(
                minutes=settings.password_reset_expire_minutes
            )
            user.updated_at = utc_now()
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        reset_url = f"{settings.client_url.rstrip('/')}/reset-password/{reset_token}"
        if settings.app_env == "production":
            logger.info("Password reset link generated", user_id=str(user.id))
        else:
            logger.info("Password reset link generated", user_id=str(user.id), reset_url=reset_url)

        await self.audit.emit(
            AuditAction.PASSWORD_RESET_REQUEST,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
        )

    async def reset_password(
        self,
        reset_token: str,
        new_password: str,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> AuthResult:
        """Complete a password reset, revoke every session, and log the user in.

        Raises:
            InvalidResetToken: token unknown or expired
        """
        user = await self.user_repo.get_by_reset_token_hash(hash_token(reset_token))
        if user is None:
            raise InvalidResetToken()

        try:
            user.hashed_password = hash_password(new_password)
            user.reset_password_token_hash = None
            user.reset_password_expires_at = None
            user.login_attempts = 0
            user.lock_until = None
            user.last_failed_login = None
            user.updated_at = utc_now()

            active = await self.token_repo.get_active_for_user(user.id)
            revoked_ids = [t.id for t in active]
            revoked_hashes = [t.token_hash for t in active]
            await self.token_repo.revoke_many(revoked_ids, RevokeReason.PASSWORD_RESET, ip)
            await self.session_repo.end_for_tokens(revoked_ids, SessionEndReason.REVOKED)

            refresh_token, _, user_session = await self._issue(user, ip, user_agent)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self._blacklist(revoked_hashes, RevokeReason.PASSWORD_RESET)
        await self.audit.emit(
            AuditAction.PASSWORD_RESET_COMPLETE,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            details={"sessions_revoked": len(revoked_ids)},
        )

        return AuthResult(
            access_token=self._access_token(user, user_session.id),
            refresh_token=refresh_token,
            user=user,
            session_id=user_session.id,
        )

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        ip: str | None = None,
        current_refresh_token: str | None = None,
        current_session_id: UUID | None = None,
    ) -> int:
        """Change password after verifying the current one.

        All other sessions are revoked; the caller's session stays valid.

        Returns:
            Number of other sessions revoked
        """
        if not verify_password(current_password, user.hashed_password):
            await self.audit.emit(
                AuditAction.PASSWORD_CHANGE,
                user_id=user.id,
                user_email=user.email,
                status=AuditStatus.FAILURE,
                status_code=401,
                error_message="Current password is incorrect",
            )
            raise InvalidCredentials("Current password is incorrect")

        current_token_id = await self._current_token_id(
            user, current_refresh_token, current_session_id
        )
        user.hashed_password = hash_password(new_password)
        user.updated_at = utc_now()
        count = await self._revoke_others(
            user,
            current_token_id,
            RevokeReason.PASSWORD_CHANGE,
            SessionEndReason.REVOKED,
            ip,
        )
        await self.audit.emit(
            AuditAction.PASSWORD_CHANGE,
            user_id=user.id,
            user_email=user.email,
            status_code=200,
            details={"sessions_revoked": count},
        )
        return count

    # --- Helpers ---

    def _access_token(self, user: User, session_id: UUID) -> str:
        return create_access_token(
            user.id,
            role=user.role,
            permissions=resolve_permissions(user.role, user.sub_role),
            session_id=session_id,
        )

    async def _issue(
        self,
        user: User,
        ip: str | None,
        user_agent: str | None,
        token_id: UUID | None = None,
    ) -> tuple[str, RefreshToken, UserSession]:
        """Create a refresh token and its session in the current transaction.

        Returns (plaintext, token row, session row); nothing is committed.
        """
        refresh_token, expires_at = create_refresh_token(user.id)
        user_agent = user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else None

        db_token = RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=expires_at,
            created_by_ip=ip,
            user_agent=user_agent,
        )
        if token_id is not None:
            db_token.id = token_id
        self.token_repo.add(db_token)
        # Token row must exist before the session row that references it
        await self.session.flush()

        user_session = UserSession(
            user_id=user.id,
            refresh_token_id=db_token.id,
            ip=ip,
            user_agent=user_agent,
            expires_at=expires_at,
            **asdict(parse_device(user_agent)),
        )
        self.session_repo.add(user_session)
        await self.session.flush()

        return refresh_token, db_token, user_session

    async def _current_token_id(
        self,
        user: User,
        current_refresh_token: str | None,
        current_session_id: UUID | None,
    ) -> UUID | None:
        """Resolve the caller's own refresh token id from a token or session id."""
        if current_refresh_token:
            db_token = await self.token_repo.get_by_hash(hash_token(current_refresh_token))
            if db_token is not None and db_token.user_id == user.id:
                return db_token.id
        if current_session_id is not None:
            user_session = await self.session_repo.get_for_user(user.id, current_session_id)
            if user_session is not None:
                return user_session.refresh_token_id
        return None

    async def _revoke_others(
        self,
        user: User,
        keep_token_id: UUID | None,
        token_reason: RevokeReason,
        session_reason: SessionEndReason,
        ip: str | None,
    ) -> int:
        active_sessions = await self.session_repo.get_active_for_user(user.id)
        token_ids = [
            s.refresh_token_id for s in active_sessions if s.refresh_token_id != keep_token_id
        ]
        return await self._revoke(token_ids, token_reason, session_reason, ip)

    async def _revoke(
        self,
        token_ids: list[UUID],
        token_reason: RevokeReason,
        session_reason: SessionEndReason,
        ip: str | None,
    ) -> int:
        """Revoke tokens and end their sessions in one commit.

        Commits any pending changes on the session as part of the same
        transaction. Returns the number of sessions ended.
        """
        try:
            hashes = await self.token_repo.get_hashes(token_ids)
            await self.token_repo.revoke_many(token_ids, token_reason, ip)
            ended = await self.session_repo.end_for_tokens(token_ids, session_reason)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self._blacklist(hashes, token_reason)
        return ended

    async def _blacklist(self, token_hashes: list[str], reason: RevokeReason) -> None:
        """Push revoked hashes to Redis after commit. The database stays authoritative."""
        if not token_hashes:
            return
        ttl = get_settings().refresh_token_expire_days * 86400
        try:
            if len(token_hashes) == 1:
                await blacklist_token(token_hashes[0], ttl, reason.value)
            else:
                await blacklist_tokens(token_hashes, ttl, reason.value)
        except Exception as e:
            logger.warning(
                "Failed to blacklist tokens in Redis",
                error=str(e),
                token_count=len(token_hashes),
            )
