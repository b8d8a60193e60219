# migrations/versions/001_initial_migration.py

"""Initial migration: users, connections, nucleus, chat, missions, places

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('users',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('email', sa.String(), nullable=False),
                    sa.Column('password_hash', sa.String(), nullable=False),
                    sa.Column('name', sa.String(), nullable=False),
                    sa.Column('birth_date', sa.Date(), nullable=True),
                    sa.Column('gender', sa.String(), nullable=True),
                    sa.Column('interested_in', sa.JSON(), nullable=True),
                    sa.Column('interests', sa.JSON(), nullable=True),
                    sa.Column('looking_for', sa.JSON(), nullable=True),
                    sa.Column('values', sa.JSON(), nullable=True),
                    sa.Column('bio', sa.Text(), nullable=True),
                    sa.Column('photos', sa.JSON(), nullable=True),
                    sa.Column('location', sa.String(), nullable=True),
                    sa.Column('city', sa.String(), nullable=True),
                    sa.Column('latitude', sa.Float(), nullable=True),
                    sa.Column('longitude', sa.Float(), nullable=True),
                    *_timestamps(),
                    sa.PrimaryKeyConstraint('id'),
                    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Connections: open_pair_key is unique and NULL once ENDED
    op.create_table('connections',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('initiator_id', sa.String(), nullable=False),
                    sa.Column('receiver_id', sa.String(), nullable=False),
                    sa.Column('pair_key', sa.String(), nullable=False),
                    sa.Column('open_pair_key', sa.String(), nullable=True),
                    sa.Column('status', sa.String(), server_default='PENDING', nullable=False),
                    sa.Column('cooled_from', sa.String(), nullable=True),
                    sa.Column('progress', sa.Integer(), server_default='0', nullable=False),
                    sa.Column('chat_level', sa.String(), server_default='NONE', nullable=False),
                    sa.Column('compatibility_score', sa.Integer(), server_default='0', nullable=False),
                    sa.Column('seen_by_receiver', sa.Boolean(), server_default=sa.false(), nullable=False),
                    sa.Column('last_activity', sa.DateTime(), server_default=sa.func.now(), nullable=False),
                    sa.Column('accepted_at', sa.DateTime(), nullable=True),
                    sa.Column('completed_at', sa.DateTime(), nullable=True),
                    sa.Column('ended_at', sa.DateTime(), nullable=True),
                    sa.Column('ended_by', sa.String(), nullable=True),
                    sa.Column('decline_reason', sa.Text(), nullable=True),
                    sa.Column('dissolve_reason', sa.Text(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['initiator_id'], ['users.id']),
                    sa.ForeignKeyConstraint(['receiver_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('open_pair_key'),
                    )
    op.create_index('ix_connections_pair_key', 'connections', ['pair_key'])
    op.create_index('ix_connections_initiator_status', 'connections', ['initiator_id', 'status'])
    op.create_index('ix_connections_receiver_status', 'connections', ['receiver_id', 'status'])

    op.create_table('activity_records',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('connection_id', sa.String(), nullable=False),
                    sa.Column('category', sa.String(), nullable=False),
                    sa.Column('key', sa.String(), nullable=False),
                    sa.Column('user_id', sa.String(), nullable=False),
                    sa.Column('payload', sa.JSON(), nullable=True),
                    sa.Column('both_completed', sa.Boolean(), server_default=sa.false(), nullable=False),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['connection_id'], ['connections.id']),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('connection_id', 'category', 'key', 'user_id', name='uq_activity_submission'),
                    )
    op.create_index('ix_activity_connection_category', 'activity_records', ['connection_id', 'category'])

    op.create_table('mini_games',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('connection_id', sa.String(), nullable=False),
                    sa.Column('type', sa.String(), nullable=False),
                    sa.Column('status', sa.String(), server_default='PENDING', nullable=False),
                    sa.Column('started_by', sa.String(), nullable=True),
                    sa.Column('state', sa.JSON(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['connection_id'], ['connections.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('connection_id', 'type', name='uq_mini_game_type'),
                    )
    op.create_index('ix_mini_games_connection_id', 'mini_games', ['connection_id'])

    op.create_table('messages',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('connection_id', sa.String(), nullable=False),
                    sa.Column('sender_id', sa.String(), nullable=False),
                    sa.Column('type', sa.String(), server_default='TEXT', nullable=False),
                    sa.Column('content', sa.Text(), nullable=False),
                    sa.Column('read_at', sa.DateTime(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['connection_id'], ['connections.id']),
                    sa.ForeignKeyConstraint(['sender_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    )
    op.create_index('ix_messages_connection_created', 'messages', ['connection_id', 'created_at'])

    op.create_table('mission_rounds',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('connection_id', sa.String(), nullable=False),
                    sa.Column('number', sa.Integer(), nullable=False),
                    sa.Column('status', sa.String(), server_default='VOTING', nullable=False),
                    sa.Column('option_ids', sa.JSON(), nullable=True),
                    sa.Column('selected_id', sa.String(), nullable=True),
                    sa.Column('votes', sa.JSON(), nullable=True),
                    sa.Column('responses', sa.JSON(), nullable=True),
                    sa.Column('voting_ends_at', sa.DateTime(), nullable=False),
                    sa.Column('mission_ends_at', sa.DateTime(), nullable=True),
                    sa.Column('completed_at', sa.DateTime(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['connection_id'], ['connections.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('connection_id', 'number', name='uq_mission_round_number'),
                    )
    op.create_index('ix_mission_rounds_connection_id', 'mission_rounds', ['connection_id'])
    op.create_index('ix_mission_rounds_status', 'mission_rounds', ['status'])

    op.create_table('place_suggestions',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('connection_id', sa.String(), nullable=False),
                    sa.Column('suggested_by', sa.String(), nullable=False),
                    sa.Column('place_id', sa.String(), nullable=False),
                    sa.Column('name', sa.String(), nullable=False),
                    sa.Column('address', sa.String(), nullable=True),
                    sa.Column('category', sa.String(), nullable=True),
                    sa.Column('latitude', sa.Float(), nullable=True),
                    sa.Column('longitude', sa.Float(), nullable=True),
                    sa.Column('photo_url', sa.String(), nullable=True),
                    sa.Column('rating', sa.Float(), nullable=True),
                    sa.Column('price_level', sa.Integer(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['connection_id'], ['connections.id']),
                    sa.ForeignKeyConstraint(['suggested_by'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('connection_id', 'place_id', name='uq_place_suggestion'),
                    )
    op.create_index('ix_place_suggestions_connection_id', 'place_suggestions', ['connection_id'])

    op.create_table('place_votes',
                    sa.Column('id', sa.String(), nullable=False),
                    sa.Column('suggestion_id', sa.String(), nullable=False),
                    sa.Column('user_id', sa.String(), nullable=False),
                    sa.Column('vote', sa.String(), nullable=False),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['suggestion_id'], ['place_suggestions.id']),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('suggestion_id', 'user_id', name='uq_place_vote'),
                    )
    op.create_index('ix_place_votes_suggestion_id', 'place_votes', ['suggestion_id'])


def downgrade() -> None:
    op.drop_table('place_votes')
    op.drop_table('place_suggestions')
    op.drop_table('mission_rounds')
    op.drop_table('messages')
    op.drop_table('mini_games')
    op.drop_table('activity_records')
    op.drop_table('connections')
    op.drop_table('users')
