from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "effort_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league_member_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="workout"),
        sa.Column("rr_value", sa.Float(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_effort_entries_league_member_id", "effort_entries", ["league_member_id"])
    op.create_index("ix_effort_entries_date", "effort_entries", ["date"])

    op.create_table(
        "league_challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("challenge_type", sa.String(length=16), nullable=False, server_default="individual"),
        sa.Column("total_points", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=24), nullable=False, server_default="draft"),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("pricing_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_league_challenges_league_id", "league_challenges", ["league_id"])
    op.create_check_constraint(
        "ck_league_challenges_type", "league_challenges",
        "challenge_type IN ('individual','team','sub_team','tournament')",
    )
    op.create_check_constraint("ck_league_challenges_total_points", "league_challenges", "total_points >= 0")

    op.create_table(
        "challenge_subteams",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
    )
    op.create_index("ix_challenge_subteams_challenge_id", "challenge_subteams", ["challenge_id"])
    op.create_index("ix_challenge_subteams_team_id", "challenge_subteams", ["team_id"])

    op.create_table(
        "challenge_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("league_member_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sub_team_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenge_subteams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("proof_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("awarded_points", sa.Float(), nullable=True),
        sa.Column("reviewed_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reviewed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_challenge_submissions_challenge_id", "challenge_submissions", ["challenge_id"])
    op.create_index("ix_challenge_submissions_league_member_id", "challenge_submissions", ["league_member_id"])
    op.create_check_constraint(
        "ck_challenge_submissions_status", "challenge_submissions", "status IN ('pending','approved','rejected')"
    )

    op.create_table(
        "tournament_matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_challenges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team1_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("team2_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="SET NULL"), nullable=True),
        sa.Column("score1", sa.Integer(), nullable=True),
        sa.Column("score2", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="scheduled"),
    )
    op.create_index("ix_tournament_matches_challenge_id", "tournament_matches", ["challenge_id"])

    op.create_table(
        "challenge_team_scores",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_challenges.id", ondelete="CASCADE"), nullable=True),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source", sa.String(length=16), nullable=False, server_default="legacy"),
        sa.Column("score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("scored_on", sa.Date(), nullable=True),
        sa.Column("updated_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_challenge_team_scores_league_id", "challenge_team_scores", ["league_id"])
    op.create_index("ix_challenge_team_scores_challenge_id", "challenge_team_scores", ["challenge_id"])
    op.create_index("ix_challenge_team_scores_team_id", "challenge_team_scores", ["team_id"])
    op.create_unique_constraint(
        "uq_challenge_team_score_source", "challenge_team_scores", ["challenge_id", "team_id", "source"]
    )
    op.create_check_constraint(
        "ck_challenge_team_scores_source", "challenge_team_scores", "source IN ('legacy','manual','computed')"
    )

def downgrade() -> None:
    op.drop_table("challenge_team_scores")
    op.drop_table("tournament_matches")
    op.drop_table("challenge_submissions")
    op.drop_table("challenge_subteams")
    op.drop_table("league_challenges")
    op.drop_index("ix_effort_entries_date", table_name="effort_entries")
    op.drop_index("ix_effort_entries_league_member_id", table_name="effort_entries")
    op.drop_table("effort_entries")
