"""initial schema: accounts, otp records, auth logs

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "20261018_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _account_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ]


def upgrade():
    target_type_enum = sa.Enum("GYM_OWNER", "TRAINER", "CUSTOMER", name="otp_target_type")
    actor_type_enum = sa.Enum("GYM_OWNER", "TRAINER", "CUSTOMER", name="auth_actor_type")
    auth_action_enum = sa.Enum(
        "REGISTER", "LOGIN", "FAILED_LOGIN", "OTP_REQUEST", "OTP_VERIFICATION", name="auth_action"
    )

    op.create_table(
        "gym_owners",
        *_account_columns(),
        sa.Column("gym_name", sa.String(length=150), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "trainers",
        *_account_columns(),
        sa.Column("gym_owner_id", sa.String(length=36), nullable=True),
        sa.Column("specialization", sa.String(length=150), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_owner_id"], ["gym_owners.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_trainers_gym_owner_id"), "trainers", ["gym_owner_id"])

    op.create_table(
        "customers",
        *_account_columns(),
        sa.Column("gym_owner_id", sa.String(length=36), nullable=True),
        sa.Column("trainer_id", sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gym_owner_id"], ["gym_owners.id"]),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_customers_gym_owner_id"), "customers", ["gym_owner_id"])
    op.create_index(op.f("ix_customers_trainer_id"), "customers", ["trainer_id"])

    for table in ("gym_owners", "trainers", "customers"):
        op.create_index(op.f(f"ix_{table}_email"), table, ["email"], unique=True)
        op.create_index(op.f(f"ix_{table}_phone"), table, ["phone"], unique=True)

    op.create_table(
        "otp_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("target", sa.String(length=320), nullable=False),
        sa.Column("target_type", target_type_enum, nullable=False),
        sa.Column("code", sa.String(length=10), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_otp_records_lookup", "otp_records", ["target", "target_type", "code"])
    op.create_index(op.f("ix_otp_records_expires_at"), "otp_records", ["expires_at"])

    op.create_table(
        "auth_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_type", actor_type_enum, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("target", sa.String(length=320), nullable=True),
        sa.Column("action", auth_action_enum, nullable=False),
        sa.Column("ip", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("meta", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_auth_logs_actor_id"), "auth_logs", ["actor_id"])


def downgrade():
    op.drop_index(op.f("ix_auth_logs_actor_id"), table_name="auth_logs")
    op.drop_table("auth_logs")
    op.drop_index(op.f("ix_otp_records_expires_at"), table_name="otp_records")
    op.drop_index("ix_otp_records_lookup", table_name="otp_records")
    op.drop_table("otp_records")
    op.drop_table("customers")
    op.drop_table("trainers")
    op.drop_table("gym_owners")
    op.execute("DROP TYPE IF EXISTS auth_action")
    op.execute("DROP TYPE IF EXISTS auth_actor_type")
    op.execute("DROP TYPE IF EXISTS otp_target_type")
