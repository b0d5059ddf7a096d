from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'projects',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('public_id', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('owner_id', sa.String(64), nullable=False, index=True),
        sa.Column('name', sa.String(256)),
        sa.Column('created_at', sa.DateTime, index=True),
    )
    op.create_table(
        'project_api_keys',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('project_id', sa.String(36), sa.ForeignKey('projects.id'), nullable=False, index=True),
        sa.Column('api_key', sa.String(128), nullable=False, unique=True, index=True),
        sa.Column('api_secret', sa.String(256), nullable=False),
        sa.Column('active', sa.Integer, nullable=False, server_default='1', index=True),
        sa.Column('usage_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime),
        sa.Column('created_at', sa.DateTime, index=True),
    )
    op.create_table(
        'client_activity_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('project_id', sa.String(36), sa.ForeignKey('projects.id'), nullable=False, index=True),
        sa.Column('client_uuid', sa.Text, nullable=False, index=True),
        sa.Column('action', sa.String(16), nullable=False, index=True),
        sa.Column('event', sa.Text, nullable=False, index=True),
        sa.Column('event_details', sa.Text, nullable=False),
        sa.Column('timestamp', sa.DateTime, nullable=False, index=True),
        sa.Column('ingested_at', sa.DateTime, index=True),
    )
    op.create_index('ix_activity_project_client_ts', 'client_activity_logs', ['project_id', 'client_uuid', 'timestamp'])
    op.create_table(
        'client_user_stories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('project_id', sa.String(36), sa.ForeignKey('projects.id'), nullable=False, index=True),
        sa.Column('client_uuid', sa.Text, nullable=False, index=True),
        sa.Column('story_text', sa.Text, nullable=False),
        sa.Column('last_activity_log_id', sa.String(36)),
        sa.Column('generated_at', sa.DateTime),
        sa.Column('updated_at', sa.DateTime, index=True),
        sa.UniqueConstraint('project_id', 'client_uuid', name='ux_user_story_project_client'),
    )
    op.create_table(
        'api_calls',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('api_key_id', sa.String(36), index=True),
        sa.Column('owner_id', sa.String(64), index=True),
        sa.Column('project_id', sa.String(36), index=True),
        sa.Column('endpoint', sa.String(256), nullable=False, index=True),
        sa.Column('call_type', sa.String(32), nullable=False, index=True),
        sa.Column('request_metadata', sa.JSON),
        sa.Column('response_status', sa.Integer, nullable=False, index=True),
        sa.Column('response_time_ms', sa.Integer),
        sa.Column('called_at', sa.DateTime, index=True),
    )


def downgrade():
    op.drop_table('api_calls')
    op.drop_table('client_user_stories')
    op.drop_index('ix_activity_project_client_ts', table_name='client_activity_logs')
    op.drop_table('client_activity_logs')
    op.drop_table('project_api_keys')
    op.drop_table('projects')
