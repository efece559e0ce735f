"""Create teams and games tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_000001"
down_revision = None
branch_labels = None
depends_on = None

_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "teams",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("abbreviation", sa.String(10), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("franchise_id", sa.Integer(), nullable=True),
        sa.Column("logo_url", sa.String(300), nullable=True),
        sa.Column("season", sa.String(8), nullable=True),
        sa.Column("season_games_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("season_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("season_losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("season_total_goals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_goals", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("recent_game_ids", _json, nullable=False, server_default="[]"),
        sa.Column("cached_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_teams_abbreviation", "teams", ["abbreviation"])
    op.create_index("idx_teams_franchise_id", "teams", ["franchise_id"])

    op.create_table(
        "games",
        sa.Column("id", sa.String(20), primary_key=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="SCHEDULED"),
        sa.Column("home_abbreviation", sa.String(10), nullable=False),
        sa.Column("home_name", sa.String(200), nullable=False),
        sa.Column("home_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("home_franchise_id", sa.Integer(), nullable=False, server_default="-1"),
        sa.Column("away_abbreviation", sa.String(10), nullable=False),
        sa.Column("away_name", sa.String(200), nullable=False),
        sa.Column("away_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("away_franchise_id", sa.Integer(), nullable=False, server_default="-1"),
        sa.Column("last_refreshed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("goals", _json, nullable=False, server_default="{}"),
        sa.Column("raw", _json, nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("idx_games_status_start_time", "games", ["status", "start_time"])
    op.create_index(
        "idx_games_home_franchise", "games", ["home_franchise_id", "status", "start_time"]
    )
    op.create_index(
        "idx_games_away_franchise", "games", ["away_franchise_id", "status", "start_time"]
    )


def downgrade() -> None:
    op.drop_index("idx_games_away_franchise", table_name="games")
    op.drop_index("idx_games_home_franchise", table_name="games")
    op.drop_index("idx_games_status_start_time", table_name="games")
    op.drop_table("games")
    op.drop_index("idx_teams_franchise_id", table_name="teams")
    op.drop_index("idx_teams_abbreviation", table_name="teams")
    op.drop_table("teams")
