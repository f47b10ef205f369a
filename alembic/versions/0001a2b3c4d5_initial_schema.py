"""initial_schema

Revision ID: 0001a2b3c4d5
Revises:
Create Date: 2026-10-19 10:00:00.000000

프로필, 게시글/태그, 상호작용, 알림, 신고/감사 로그, 리프레시 토큰 테이블 생성.
Create profiles, posts/tags, interactions, notifications, moderation and
refresh token tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = '0001a2b3c4d5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # profiles — 계정, 공개 프로필, 큐/이메일/공개 범위 설정
    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('username', sa.String(20), nullable=False, unique=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('avatar_url', sa.String(1000), nullable=True),
        sa.Column('header_url', sa.String(1000), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(64), server_default='UTC', nullable=False),
        sa.Column('show_likes', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('show_comments', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('show_followers', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('show_following', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('show_sensitive_posts', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('blur_sensitive_by_default', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('queue_enabled', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('queue_paused', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('queue_posts_per_day', sa.Integer(), server_default='8', nullable=False),
        sa.Column('queue_window_start', sa.String(5), server_default='09:00', nullable=False),
        sa.Column('queue_window_end', sa.String(5), server_default='21:00', nullable=False),
        sa.Column('role', sa.Integer(), server_default='0', nullable=False),
        sa.Column('lock_status', sa.String(20), server_default='unlocked', nullable=False),
        sa.Column('banned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ban_reason', sa.Text(), nullable=True),
        sa.Column('email_likes', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('email_comments', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('email_reblogs', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('email_follows', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('email_mentions', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('email_frequency', sa.String(20), server_default='immediate', nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_profiles_username', 'profiles', ['username'])

    op.create_table(
        'refresh_tokens',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token', sa.String(512), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_refresh_tokens_user_id', 'refresh_tokens', ['user_id'])

    # posts — 원글과 리블로그 (original_post_id는 체인의 루트)
    op.create_table(
        'posts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('author_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_type', sa.String(20), nullable=False),
        sa.Column('content', JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('is_sensitive', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_pinned', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('status', sa.String(20), server_default='published', nullable=False),
        sa.Column('queue_position', sa.Integer(), nullable=True),
        sa.Column('scheduled_for', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('published_from_queue', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('original_post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reblogged_from_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reblog_comment_html', sa.Text(), nullable=True),
        sa.Column('moderation_status', sa.String(20), server_default='approved', nullable=False),
        sa.Column('moderation_reason', sa.Text(), nullable=True),
        sa.Column('moderated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('moderated_by', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_posts_author_status', 'posts', ['author_id', 'status'])
    op.create_index('ix_posts_status_scheduled', 'posts', ['status', 'scheduled_for'])
    op.create_index('ix_posts_reblogged_from', 'posts', ['reblogged_from_id'])

    op.create_table(
        'tags',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        'post_tags',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tag_id', UUID(as_uuid=True), sa.ForeignKey('tags.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('post_id', 'tag_id', name='uq_post_tag'),
    )

    # 상호작용 — likes, comments, follows, blocks
    op.create_table(
        'likes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'post_id', name='uq_like_user_post'),
    )
    op.create_index('ix_likes_post_id', 'likes', ['post_id'])

    op.create_table(
        'comments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content_html', sa.Text(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_comments_post_id', 'comments', ['post_id'])

    op.create_table(
        'follows',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('follower_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('following_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follow_pair'),
    )
    op.create_index('ix_follows_following_id', 'follows', ['following_id'])

    op.create_table(
        'blocks',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('blocker_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blocked_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('blocker_id', 'blocked_id', name='uq_block_pair'),
    )

    # 신고 및 감사 — reports, escalation_history, audit_logs
    op.create_table(
        'reports',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('reporter_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reported_user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('subject', sa.String(50), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('source', sa.String(20), server_default='user_report', nullable=False),
        sa.Column('status', sa.String(30), server_default='pending', nullable=False),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_role', sa.Integer(), server_default='3', nullable=False),
        sa.Column('escalated_by', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('escalated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('escalation_reason', sa.Text(), nullable=True),
        sa.Column('resolved_by', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_reports_status_role', 'reports', ['status', 'assigned_role'])
    op.create_index('ix_reports_reported_user', 'reports', ['reported_user_id'])

    op.create_table(
        'escalation_history',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('report_id', UUID(as_uuid=True), sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=False),
        sa.Column('from_role', sa.Integer(), nullable=False),
        sa.Column('to_role', sa.Integer(), nullable=False),
        sa.Column('escalated_by', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_escalation_history_report_id', 'escalation_history', ['report_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('actor_username', sa.String(20), nullable=True),
        sa.Column('actor_role', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(30), nullable=False),
        sa.Column('target_user_id', UUID(as_uuid=True), nullable=True),
        sa.Column('target_user_username', sa.String(20), nullable=True),
        sa.Column('target_post_id', UUID(as_uuid=True), nullable=True),
        sa.Column('target_report_id', UUID(as_uuid=True), nullable=True),
        sa.Column('details', JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_logs_action_created', 'audit_logs', ['action', 'created_at'])

    # notifications — reports 이후에 생성 (report_id FK)
    op.create_table(
        'notifications',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('recipient_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('actor_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=True),
        sa.Column('notification_type', sa.String(20), nullable=False),
        sa.Column('post_id', UUID(as_uuid=True), sa.ForeignKey('posts.id', ondelete='CASCADE'), nullable=True),
        sa.Column('comment_id', UUID(as_uuid=True), sa.ForeignKey('comments.id', ondelete='CASCADE'), nullable=True),
        sa.Column('report_id', UUID(as_uuid=True), sa.ForeignKey('reports.id', ondelete='CASCADE'), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_notifications_recipient_created', 'notifications', ['recipient_id', 'created_at'])


def downgrade() -> None:
    for table in (
        'notifications', 'audit_logs', 'escalation_history', 'reports',
        'blocks', 'follows', 'comments', 'likes', 'post_tags', 'tags',
        'posts', 'refresh_tokens', 'profiles',
    ):
        op.drop_table(table)
