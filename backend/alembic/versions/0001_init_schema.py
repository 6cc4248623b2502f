"""init leaderboard schema

Revision ID: 0001_init_schema
Revises: 
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "0001_init_schema"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    # players
    op.create_table(
        "players",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_players_name", "players", ["name"])

    # games
    op.create_table(
        "games",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("date", sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("game_type", sa.String(100), nullable=False, server_default="3 Patti"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("idx_games_date", "games", ["date"])

    # player_game_results (one row per player per game)
    op.create_table(
        "player_game_results",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("player_id", sa.Integer, sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False),
        sa.Column("game_id", sa.Integer, sa.ForeignKey("games.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("player_id", "game_id", name="uq_player_game_results_player_game"),
        sa.CheckConstraint("position >= 1", name="ck_player_game_results_position"),
    )
    op.create_index("idx_player_game_results_player_id", "player_game_results", ["player_id"])
    op.create_index("idx_player_game_results_game_id", "player_game_results", ["game_id"])
    op.create_index("idx_player_game_results_position", "player_game_results", ["position"])

def downgrade():
    op.drop_index("idx_player_game_results_position", table_name="player_game_results")
    op.drop_index("idx_player_game_results_game_id", table_name="player_game_results")
    op.drop_index("idx_player_game_results_player_id", table_name="player_game_results")
    op.drop_table("player_game_results")

    op.drop_index("idx_games_date", table_name="games")
    op.drop_table("games")

    op.drop_index("idx_players_name", table_name="players")
    op.drop_table("players")
