from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "team",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "uq_team_name_lower", "team", [sa.text("lower(name)")], unique=True
    )
    op.create_table(
        "player",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("number", sa.Integer(), nullable=True),
        sa.Column("gender", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "team_player",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "team_id",
            sa.Integer(),
            sa.ForeignKey("team.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "team_id", "player_id", name="uq_team_player_team_id_player_id"
        ),
    )
    op.create_table(
        "game",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column(
            "team_id",
            sa.Integer(),
            sa.ForeignKey("team.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("team_name", sa.String(), nullable=False),
        sa.Column("opponent_name", sa.String(), nullable=False),
        sa.Column("team_size", sa.Integer(), nullable=False),
        sa.Column("gender_rule", sa.String(), nullable=False),
        sa.Column("starting_puller", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_table(
        "point",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "game_id",
            sa.Integer(),
            sa.ForeignKey("game.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("point_number", sa.Integer(), nullable=False),
        sa.Column("starting_o_line", sa.Boolean(), nullable=False),
        sa.Column("lineup", sa.JSON(), nullable=True),
        sa.Column("gender_ratio", sa.String(), nullable=True),
        sa.Column("target_ratio", sa.String(), nullable=True),
        sa.Column("our_score_after", sa.Integer(), nullable=True),
        sa.Column("opponent_score_after", sa.Integer(), nullable=True),
        sa.Column("scored_by", sa.String(), nullable=True),
        sa.UniqueConstraint(
            "game_id", "point_number", name="uq_point_game_id_point_number"
        ),
    )
    op.create_table(
        "point_event",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "point_id",
            sa.Integer(),
            sa.ForeignKey("point.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", sa.String(), nullable=False),
        sa.Column("thrower_id", sa.Integer(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("defender_id", sa.Integer(), sa.ForeignKey("player.id"), nullable=True),
        sa.Column("sequence_order", sa.Integer(), nullable=False),
        sa.Column("converted_from", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "point_id",
            "sequence_order",
            name="uq_point_event_point_id_sequence_order",
        ),
    )

def downgrade():
    op.drop_table("point_event")
    op.drop_table("point")
    op.drop_table("game")
    op.drop_table("team_player")
    op.drop_index("uq_team_name_lower", table_name="team")
    op.drop_table("player")
    op.drop_table("team")
