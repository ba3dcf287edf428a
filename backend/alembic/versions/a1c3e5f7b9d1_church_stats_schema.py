"""Church stats schema: churches, members, weekly_attendances, events, event_attendees

Churches carry the derived aggregate columns; the other tables are the
source collections they are recomputed from.
"""

from alembic import op
import sqlalchemy as sa

# --- Alembic identifiers ---
revision = "a1c3e5f7b9d1"
down_revision = None
branch_labels = None
depends_on = None

MEMBER_TYPES = ("standard", "visitor", "relative", "infant", "other")
CHURCH_ROLES = ("ordained_preacher", "unordained_preacher", "ordained_deacon", "unordained_deacon")


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default=sa.text("0"))


def upgrade() -> None:
    # --- churches (tenant rows + aggregates) ---
    op.create_table(
        "churches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("responsible", sa.String(length=200), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("attendance_window_weeks", sa.Integer(), nullable=True),
        _counter("membership_count"),
        _counter("avg_weekly_attendance"),
        _counter("faith_decisions_year"),
        sa.Column("faith_decisions_ref_year", sa.Integer(), nullable=True),
        _counter("ordained_preachers"),
        _counter("unordained_preachers"),
        _counter("ordained_deacons"),
        _counter("unordained_deacons"),
        sa.Column("stats_updated_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.CheckConstraint(
            "attendance_window_weeks IS NULL OR attendance_window_weeks > 0",
            name="ck_churches_attendance_window_positive",
        ),
    )
    op.create_index("ix_churches_id", "churches", ["id"], unique=False)

    # --- members ---
    op.create_table(
        "members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("sex", sa.String(length=1), nullable=True),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("baptized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("member_type", sa.Enum(*MEMBER_TYPES, name="membertype"), nullable=False),
        sa.Column("church_role", sa.Enum(*CHURCH_ROLES, name="churchrole"), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=150), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["church_id"], ["churches.id"], ondelete="CASCADE", name="fk_members_church"),
        sa.CheckConstraint("age IS NULL OR (age >= 0 AND age <= 150)", name="ck_members_age_range"),
        sa.CheckConstraint("sex IS NULL OR sex IN ('M', 'F')", name="ck_members_sex"),
    )
    op.create_index("ix_members_id", "members", ["id"], unique=False)
    op.create_index("ix_members_church_id", "members", ["church_id"], unique=False)
    op.create_index("ix_members_member_type", "members", ["member_type"], unique=False)
    op.create_index("ix_members_church_role", "members", ["church_role"], unique=False)

    # --- weekly_attendances ---
    op.create_table(
        "weekly_attendances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("week_date", sa.Date(), nullable=False),
        sa.Column("attendance_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(
            ["church_id"], ["churches.id"], ondelete="CASCADE", name="fk_weekly_attendances_church"
        ),
        sa.UniqueConstraint("church_id", "week_date", name="uq_weekly_attendances_church_week"),
        sa.CheckConstraint("attendance_count >= 0", name="ck_weekly_attendances_count_non_negative"),
    )
    op.create_index("ix_weekly_attendances_id", "weekly_attendances", ["id"], unique=False)
    op.create_index("ix_weekly_attendances_church_id", "weekly_attendances", ["church_id"], unique=False)

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("church_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(length=100), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("location", sa.String(length=300), nullable=True),
        sa.Column("preacher_id", sa.Integer(), nullable=True),
        sa.Column("worship_leader_id", sa.Integer(), nullable=True),
        sa.Column("singer_id", sa.Integer(), nullable=True),
        _counter("attendees_count"),
        _counter("faith_decisions"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.ForeignKeyConstraint(["church_id"], ["churches.id"], ondelete="CASCADE", name="fk_events_church"),
        sa.ForeignKeyConstraint(["preacher_id"], ["members.id"], ondelete="SET NULL", name="fk_events_preacher"),
        sa.ForeignKeyConstraint(
            ["worship_leader_id"], ["members.id"], ondelete="SET NULL", name="fk_events_worship_leader"
        ),
        sa.ForeignKeyConstraint(["singer_id"], ["members.id"], ondelete="SET NULL", name="fk_events_singer"),
        sa.CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_events_end_after_start"),
    )
    op.create_index("ix_events_id", "events", ["id"], unique=False)
    op.create_index("ix_events_church_id", "events", ["church_id"], unique=False)
    op.create_index("ix_events_event_type", "events", ["event_type"], unique=False)
    op.create_index("ix_events_start_date", "events", ["start_date"], unique=False)

    # --- event_attendees ---
    op.create_table(
        "event_attendees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("member_id", sa.Integer(), nullable=False),
        sa.Column("attended", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("made_faith_decision", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE", name="fk_event_attendees_event"),
        sa.ForeignKeyConstraint(
            ["member_id"], ["members.id"], ondelete="CASCADE", name="fk_event_attendees_member"
        ),
        sa.UniqueConstraint("event_id", "member_id", name="uq_event_attendees_event_member"),
    )
    op.create_index("ix_event_attendees_id", "event_attendees", ["id"], unique=False)
    op.create_index("ix_event_attendees_event_id", "event_attendees", ["event_id"], unique=False)
    op.create_index("ix_event_attendees_member_id", "event_attendees", ["member_id"], unique=False)


def downgrade() -> None:
    op.drop_table("event_attendees")
    op.drop_table("events")
    op.drop_table("weekly_attendances")
    op.drop_table("members")
    op.drop_table("churches")
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        sa.Enum(name="churchrole").drop(bind, checkfirst=True)
        sa.Enum(name="membertype").drop(bind, checkfirst=True)
