"""create room and player

Revision ID: 3b1f0c2d9a7e
Revises:
Create Date: 2026-10-19 10:12:44.318204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import sqlmodel


# revision identifiers, used by Alembic.
revision: str = "3b1f0c2d9a7e"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "room",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("code", sqlmodel.sql.sqltypes.AutoString(length=6), nullable=False),
        sa.Column(
            "host_uid", sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum("LOBBY", "IN_PROGRESS", "ENDED", name="roomstatus"),
            nullable=False,
        ),
        sa.Column("locked", sa.Boolean(), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("duration_sec", sa.Integer(), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("player_count", sa.Integer(), nullable=True),
        sa.Column("finished_count", sa.Integer(), nullable=False),
        sa.Column(
            "ended_reason",
            sa.Enum("ALL_FINISHED", "HOST_LEFT", name="endedreason"),
            nullable=True,
        ),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("code"),
    )
    op.create_index(op.f("ix_room_host_uid"), "room", ["host_uid"], unique=False)

    op.create_table(
        "player",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "room_code", sqlmodel.sql.sqltypes.AutoString(length=6), nullable=False
        ),
        sa.Column("uid", sqlmodel.sql.sqltypes.AutoString(length=128), nullable=False),
        sa.Column(
            "display_name",
            sqlmodel.sql.sqltypes.AutoString(length=32),
            nullable=False,
        ),
        sa.Column("is_host", sa.Boolean(), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("correct", sa.Integer(), nullable=False),
        sa.Column("accuracy", sa.Integer(), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["room_code"], ["room.code"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_code", "uid"),
    )
    op.create_index(
        op.f("ix_player_room_code"), "player", ["room_code"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_player_room_code"), table_name="player")
    op.drop_table("player")
    op.drop_index(op.f("ix_room_host_uid"), table_name="room")
    op.drop_table("room")
    sa.Enum(name="endedreason").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="roomstatus").drop(op.get_bind(), checkfirst=True)
