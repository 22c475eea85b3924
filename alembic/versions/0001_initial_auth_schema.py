"""initial auth schema with system roles

Revision ID: 0001_initial_auth_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
import uuid
from datetime import datetime, timezone

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_auth_schema'
down_revision = None
branch_labels = None
depends_on = None

# Kept in step with lovedev.infrastructure.database.seed
BASE_PERMISSIONS = {
    'USER_READ': ('user', 'read', 'Read user profiles'),
    'USER_WRITE': ('user', 'write', 'Update user profiles and status'),
    'USER_DELETE': ('user', 'delete', 'Delete users'),
    'ROLE_MANAGE': ('role', 'manage', 'Manage roles and permissions'),
}
SYSTEM_ROLES = {
    'ROLE_ADMIN': ('Administrator', ['USER_READ', 'USER_WRITE', 'USER_DELETE', 'ROLE_MANAGE']),
    'ROLE_MANAGER': ('Manager', ['USER_READ', 'USER_WRITE']),
    'ROLE_EMPLOYEE': ('Employee', ['USER_READ']),
    'ROLE_USER': ('Regular user', []),
}


def _timestamp(name, nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        'permissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
        sa.Column('resource', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        _timestamp('created_at', nullable=False),
        sa.UniqueConstraint('resource', 'action', name='uq_permissions_resource_action'),
    )
    op.create_table(
        'roles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=50), nullable=False, unique=True),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('is_system_role', sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp('created_at', nullable=False),
        _timestamp('updated_at'),
    )
    op.create_table(
        'role_permissions',
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('roles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column(
            'permission_id', sa.Uuid(), sa.ForeignKey('permissions.id', ondelete='CASCADE'), primary_key=True
        ),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column(
            'status',
            sa.Enum('ACTIVE', 'INACTIVE', 'BANNED', name='user_status', native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_token', sa.String(length=64), nullable=True),
        _timestamp('verification_token_expires_at'),
        sa.Column('reset_password_token', sa.String(length=64), nullable=True),
        _timestamp('reset_password_token_expires_at'),
        _timestamp('last_login_at'),
        _timestamp('created_at', nullable=False),
        _timestamp('updated_at'),
        _timestamp('deleted_at'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_verification_token', 'users', ['verification_token'])
    op.create_index('ix_users_reset_password_token', 'users', ['reset_password_token'])
    op.create_table(
        'user_roles',
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('role_id', sa.Uuid(), sa.ForeignKey('roles.id', ondelete='RESTRICT'), primary_key=True),
    )
    op.create_table(
        'refresh_tokens',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('token', sa.String(length=1024), nullable=False, unique=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        _timestamp('expires_at', nullable=False),
        sa.Column('revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp('created_at', nullable=False),
        _timestamp('revoked_at'),
    )
    op.create_index('ix_refresh_tokens_user_id_revoked', 'refresh_tokens', ['user_id', 'revoked'])
    op.create_index('ix_refresh_tokens_expires_at', 'refresh_tokens', ['expires_at'])
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'action',
            sa.Enum(
                'CREATE', 'UPDATE', 'DELETE', 'LOGIN', 'LOGOUT', 'REGISTER', 'VERIFY_EMAIL',
                'RESET_PASSWORD', 'CHANGE_ROLE', 'CHANGE_STATUS',
                name='audit_action', native_enum=False, length=32,
            ),
            nullable=False,
        ),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('old_value', sa.JSON(), nullable=True),
        sa.Column('new_value', sa.JSON(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('description', sa.String(length=1000), nullable=True),
        _timestamp('created_at', nullable=False),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    _seed_system_roles()


def _seed_system_roles() -> None:
    now = datetime.now(timezone.utc)
    permissions = sa.table(
        'permissions',
        sa.column('id', sa.Uuid()),
        sa.column('name', sa.String()),
        sa.column('resource', sa.String()),
        sa.column('action', sa.String()),
        sa.column('description', sa.String()),
        sa.column('created_at', sa.DateTime(timezone=True)),
    )
    roles = sa.table(
        'roles',
        sa.column('id', sa.Uuid()),
        sa.column('name', sa.String()),
        sa.column('description', sa.String()),
        sa.column('is_system_role', sa.Boolean()),
        sa.column('created_at', sa.DateTime(timezone=True)),
    )
    role_permissions = sa.table(
        'role_permissions',
        sa.column('role_id', sa.Uuid()),
        sa.column('permission_id', sa.Uuid()),
    )

    permission_ids = {name: uuid.uuid4() for name in BASE_PERMISSIONS}
    role_ids = {name: uuid.uuid4() for name in SYSTEM_ROLES}

    op.bulk_insert(
        permissions,
        [
            {
                'id': permission_ids[name],
                'name': name,
                'resource': resource,
                'action': action,
                'description': description,
                'created_at': now,
            }
            for name, (resource, action, description) in BASE_PERMISSIONS.items()
        ],
    )
    op.bulk_insert(
        roles,
        [
            {
                'id': role_ids[name],
                'name': name,
                'description': description,
                'is_system_role': True,
                'created_at': now,
            }
            for name, (description, _) in SYSTEM_ROLES.items()
        ],
    )
    op.bulk_insert(
        role_permissions,
        [
            {'role_id': role_ids[role], 'permission_id': permission_ids[permission]}
            for role, (_, granted) in SYSTEM_ROLES.items()
            for permission in granted
        ],
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('refresh_tokens')
    op.drop_table('user_roles')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
