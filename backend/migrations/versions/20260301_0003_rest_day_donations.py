from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20260301_0003"
down_revision = "20260301_0002"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "rest_day_donations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("donor_member_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_member_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("days_transferred", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("proof_url", sa.Text(), nullable=True),
        sa.Column("captain_approved_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("captain_approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("final_approved_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("final_approved_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("rejected_by", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_rest_day_donations_league_id", "rest_day_donations", ["league_id"])
    op.create_index("ix_rest_day_donations_donor_member_id", "rest_day_donations", ["donor_member_id"])
    op.create_index("ix_rest_day_donations_receiver_member_id", "rest_day_donations", ["receiver_member_id"])
    op.create_check_constraint("ck_rest_day_donations_days", "rest_day_donations", "days_transferred > 0")
    op.create_check_constraint(
        "ck_rest_day_donations_status", "rest_day_donations",
        "status IN ('pending','captain_approved','approved','rejected')",
    )

    op.create_table(
        "rest_day_adjustments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("league_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("leagues.id", ondelete="CASCADE"), nullable=False),
        sa.Column("league_member_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("league_members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("donation_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("rest_day_donations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_rest_day_adjustments_league_id", "rest_day_adjustments", ["league_id"])
    op.create_index("ix_rest_day_adjustments_league_member_id", "rest_day_adjustments", ["league_member_id"])
    op.create_index("ix_rest_day_adjustments_donation_id", "rest_day_adjustments", ["donation_id"])
    op.create_unique_constraint("uq_rest_day_adjustment_once", "rest_day_adjustments", ["league_member_id", "donation_id"])

def downgrade() -> None:
    op.drop_table("rest_day_adjustments")
    op.drop_table("rest_day_donations")
