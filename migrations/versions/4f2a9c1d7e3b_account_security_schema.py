"""account security schema: users, failed attempts, lockouts, security questions, audit log

Revision ID: 4f2a9c1d7e3b
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4f2a9c1d7e3b'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('password_changed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table(
        'failed_attempts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('source', sa.String(length=20), nullable=False, server_default='LOGIN'),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('failed_attempts', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_failed_attempts_identity'), ['identity'], unique=False)
        batch_op.create_index(batch_op.f('ix_failed_attempts_created_at'), ['created_at'], unique=False)

    op.create_table(
        'lockout_records',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=255), nullable=False),
        sa.Column('locked_at', sa.DateTime(), nullable=False),
        sa.Column('unlock_at', sa.DateTime(), nullable=False),
        sa.Column('failed_attempt_count', sa.Integer(), nullable=False),
        sa.Column('lockout_count', sa.Integer(), nullable=False),
        sa.CheckConstraint('unlock_at > locked_at', name='ck_lockout_unlock_after_lock'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('lockout_records', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_lockout_records_identity'), ['identity'], unique=True)

    op.create_table(
        'lockout_counters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=255), nullable=False),
        sa.Column('lockout_count', sa.Integer(), nullable=False),
        sa.Column('last_locked_at', sa.DateTime(), nullable=True),
        sa.Column('last_unlock_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('lockout_counters', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_lockout_counters_identity'), ['identity'], unique=True)

    op.create_table(
        'security_questions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.String(length=64), nullable=False),
        sa.Column('prompt', sa.String(length=255), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('answer_hash', sa.String(length=128), nullable=False),
        sa.Column('salt', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'question_id', name='uq_user_security_question')
    )
    with op.batch_alter_table('security_questions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_security_questions_user_id'), ['user_id'], unique=False)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('identity', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('ip', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('metadata_json', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_audit_logs_identity'), ['identity'], unique=False)


def downgrade():
    with op.batch_alter_table('audit_logs', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_audit_logs_identity'))
    op.drop_table('audit_logs')

    with op.batch_alter_table('security_questions', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_security_questions_user_id'))
    op.drop_table('security_questions')

    with op.batch_alter_table('lockout_counters', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_lockout_counters_identity'))
    op.drop_table('lockout_counters')

    with op.batch_alter_table('lockout_records', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_lockout_records_identity'))
    op.drop_table('lockout_records')

    with op.batch_alter_table('failed_attempts', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_failed_attempts_created_at'))
        batch_op.drop_index(batch_op.f('ix_failed_attempts_identity'))
    op.drop_table('failed_attempts')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_users_email'))
    op.drop_table('users')
