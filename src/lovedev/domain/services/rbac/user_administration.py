"""Administrative changes to user accounts: roles, status and deletion.

Every mutation locks the user row before reading the current role set, so
two administrators editing the same user serialize instead of racing. That
is what keeps the "at least one role" invariant intact under concurrency.
"""

from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from lovedev.core.exceptions import RoleAssignmentError, RoleNotFoundError, UserNotFoundError
from lovedev.domain.entities.audit_log import AuditAction
from lovedev.domain.entities.role import Role
from lovedev.domain.entities.user import User, UserStatus
from lovedev.domain.interfaces.repositories import IRoleRepository, IUserRepository
from lovedev.domain.services.audit import AuditService
from lovedev.domain.services.auth.session import SessionManager
from lovedev.domain.services.auth.token import TokenCodec
from lovedev.domain.services.base import commit_unit_of_work
from lovedev.domain.value_objects.identity import RequestContext, normalize_role
from lovedev.infrastructure.repositories.role_repository import RoleRepository
from lovedev.infrastructure.repositories.user_repository import UserRepository

logger = get_logger(__name__)

USER_ENTITY = "User"


class UserAdministrationService:
    """Role assignment, status changes and soft deletion of users.

    Role names are accepted with or without the ``ROLE_`` prefix.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        token_codec: TokenCodec,
        audit_service: Optional[AuditService] = None,
        users: Optional[IUserRepository] = None,
        roles: Optional[IRoleRepository] = None,
        session_manager: Optional[SessionManager] = None,
    ):
        self.db_session = db_session
        self.token_codec = token_codec
        self.audit_service = audit_service
        self.users = users or UserRepository(db_session)
        self.roles = roles or RoleRepository(db_session)
        self.session_manager = session_manager or SessionManager(db_session, token_codec)

    async def get_user(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    async def _locked_user(self, user_id: UUID) -> User:
        user = await self.users.get_by_id(user_id, for_update=True)
        if user is None:
            raise UserNotFoundError()
        return user

    async def _role(self, name: str) -> Role:
        role = await self.roles.get_by_name(normalize_role(name))
        if role is None:
            raise RoleNotFoundError(f"Role not found: {normalize_role(name)}")
        return role

    # ------------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------------

    async def add_role(
        self,
        user_id: UUID,
        role_name: str,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> User:
        """Grant one role.

        Raises:
            UserNotFoundError / RoleNotFoundError: Unknown user or role.
            RoleAssignmentError: The user already has the role.
        """
        user = await self._locked_user(user_id)
        role = await self._role(role_name)
        if user.has_role(role.name):
            raise RoleAssignmentError(f"User already has role {role.name}")

        before = user.role_names
        user.roles.append(role)
        return await self._save_roles(user, before, actor_id, context)

    async def remove_role(
        self,
        user_id: UUID,
        role_name: str,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> User:
        """Withdraw one role, refusing to leave the user without any.

        Raises:
            UserNotFoundError / RoleNotFoundError: Unknown user or role.
            RoleAssignmentError: The user lacks the role, or it is their last one.
        """
        user = await self._locked_user(user_id)
        role = await self._role(role_name)
        if not user.has_role(role.name):
            raise RoleAssignmentError(f"User does not have role {role.name}")
        if len(user.roles) <= 1:
            raise RoleAssignmentError(
                "Cannot remove the last role from user. User must have at least one role."
            )

        before = user.role_names
        user.roles = [held for held in user.roles if held.name != role.name]
        return await self._save_roles(user, before, actor_id, context)

    async def replace_roles(
        self,
        user_id: UUID,
        role_names: Iterable[str],
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> User:
        """Replace the whole role set; nothing changes unless every name resolves.

        Raises:
            RoleAssignmentError: The target set is empty.
            UserNotFoundError / RoleNotFoundError: Unknown user or any unknown role.
        """
        wanted = sorted({normalize_role(name) for name in role_names if name and name.strip()})
        if not wanted:
            raise RoleAssignmentError("At least one role is required")

        user = await self._locked_user(user_id)
        found = await self.roles.get_by_names(wanted)
        missing = sorted(set(wanted) - {role.name for role in found})
        if missing:
            raise RoleNotFoundError(f"Role not found: {', '.join(missing)}")

        before = user.role_names
        user.roles = found
        return await self._save_roles(user, before, actor_id, context)

    async def set_single_role(
        self,
        user_id: UUID,
        role_name: str,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> User:
        return await self.replace_roles(user_id, [role_name], actor_id, context)

    async def _save_roles(
        self,
        user: User,
        before: List[str],
        actor_id: Optional[UUID],
        context: Optional[RequestContext],
    ) -> User:
        await self.users.add(user)
        await commit_unit_of_work(self.db_session)
        after = user.role_names
        logger.info("User roles changed", user_id=str(user.id), before=before, after=after)
        await self._audit(
            AuditAction.CHANGE_ROLE,
            user.id,
            actor_id,
            context,
            old_value={"roles": before},
            new_value={"roles": after},
            description="User roles changed",
        )
        return user

    # ------------------------------------------------------------------
    # Status and deletion
    # ------------------------------------------------------------------

    async def update_status(
        self,
        user_id: UUID,
        status: UserStatus,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> User:
        """Change the account status; banning also ends every session."""
        user = await self._locked_user(user_id)
        previous = user.status
        user.status = status
        await self.users.add(user)
        if status == UserStatus.BANNED:
            await self.session_manager.revoke_all(user.id)
        await commit_unit_of_work(self.db_session)
        logger.info(
            "User status changed", user_id=str(user.id), before=previous.value, after=status.value
        )
        await self._audit(
            AuditAction.CHANGE_STATUS,
            user.id,
            actor_id,
            context,
            old_value={"status": previous.value},
            new_value={"status": status.value},
            description="User status changed",
        )
        return user

    async def delete_user(
        self,
        user_id: UUID,
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Soft delete: clear roles, stamp ``deleted_at`` and end every session."""
        user = await self._locked_user(user_id)
        await self._stage_delete(user)
        await commit_unit_of_work(self.db_session)
        logger.info("User deleted", user_id=str(user.id))
        await self._audit(
            AuditAction.DELETE, user.id, actor_id, context, description="User soft deleted"
        )

    async def delete_users(
        self,
        user_ids: Iterable[UUID],
        actor_id: Optional[UUID] = None,
        context: Optional[RequestContext] = None,
    ) -> List[UUID]:
        """Soft delete several users in one transaction; unknown ids are skipped.

        Returns:
            The ids that were actually deleted.
        """
        deleted = []
        for user_id in dict.fromkeys(user_ids):
            user = await self.users.get_by_id(user_id, for_update=True)
            if user is None:
                logger.debug("Batch delete skipped unknown user", user_id=str(user_id))
                continue
            await self._stage_delete(user)
            deleted.append(user.id)
        await commit_unit_of_work(self.db_session)
        logger.info("Users deleted", count=len(deleted))
        for user_id in deleted:
            await self._audit(
                AuditAction.DELETE, user_id, actor_id, context, description="User soft deleted"
            )
        return deleted

    async def _stage_delete(self, user: User) -> None:
        # Associations go first so no user_roles rows point at a deleted user.
        user.roles = []
        await self.users.add(user)
        user.deleted_at = self.token_codec.now()
        await self.users.add(user)
        await self.session_manager.revoke_all(user.id)

    async def _audit(
        self,
        action: AuditAction,
        user_id: UUID,
        actor_id: Optional[UUID],
        context: Optional[RequestContext],
        old_value=None,
        new_value=None,
        description: Optional[str] = None,
    ) -> None:
        if self.audit_service is None:
            return
        await self.audit_service.log_action(
            action=action,
            entity_type=USER_ENTITY,
            entity_id=user_id,
            user_id=actor_id,
            old_value=old_value,
            new_value=new_value,
            description=description,
            context=context,
        )
