"""leaderboard and recent games views

Revision ID: 0002_leaderboard_views
Revises: 0001_init_schema
Create Date: 2026-10-18
"""

from alembic import op


revision = "0002_leaderboard_views"
down_revision = "0001_init_schema"
branch_labels = None
depends_on = None


def upgrade():
    # Lifetime aggregates; must agree with app.services.ranking.aggregate
    op.execute("""
        CREATE OR REPLACE VIEW leaderboard_stats AS
        SELECT
            p.id,
            p.name,
            p.avatar_url,
            count(pgr.id) AS total_games,
            coalesce(sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END), 0) AS games_won,
            coalesce(round(
                sum(CASE WHEN pgr.position = 1 THEN 1 ELSE 0 END)::numeric / nullif(count(pgr.id), 0) * 100, 2
            ), 0) AS win_rate,
            round(avg(pgr.position), 2) AS avg_position,
            min(pgr.position) AS best_position,
            max(pgr.position) AS worst_position,
            max(g.date) AS last_game_date,
            coalesce(round(
                sum(CASE WHEN pgr.position = 1 THEN 10 ELSE 0 END) +
                sum(CASE WHEN pgr.position = 2 THEN 5 ELSE 0 END) +
                sum(CASE WHEN pgr.position = 3 THEN 3 ELSE 0 END) +
                sum(CASE WHEN pgr.position = 4 THEN 1 ELSE 0 END) +
                (10 - greatest(avg(pgr.position), 1)) * count(pgr.id) / 10.0,
            2), 0) AS ranking_score
        FROM players p
        LEFT JOIN player_game_results pgr ON pgr.player_id = p.id
        LEFT JOIN games g ON g.id = pgr.game_id
        GROUP BY p.id, p.name, p.avatar_url
    """)

    op.execute("""
        CREATE OR REPLACE VIEW recent_games AS
        SELECT
            g.id,
            g.date,
            g.location,
            g.game_type,
            g.notes,
            coalesce(
                json_agg(
                    json_build_object(
                        'player_id', p.id,
                        'player_name', p.name,
                        'position', pgr.position
                    ) ORDER BY pgr.position
                ) FILTER (WHERE pgr.id IS NOT NULL),
                '[]'::json
            ) AS results
        FROM games g
        LEFT JOIN player_game_results pgr ON pgr.game_id = g.id
        LEFT JOIN players p ON p.id = pgr.player_id
        GROUP BY g.id, g.date, g.location, g.game_type, g.notes
    """)


def downgrade():
    op.execute("DROP VIEW IF EXISTS recent_games")
    op.execute("DROP VIEW IF EXISTS leaderboard_stats")
