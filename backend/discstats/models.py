from sqlalchemy.orm import relationship
from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Boolean,
    Index,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from .db import Base


class Team(Base):
    __tablename__ = "team"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    memberships = relationship(
        "TeamPlayer", cascade="all, delete-orphan", back_populates="team"
    )

    __table_args__ = (
        Index("uq_team_name_lower", func.lower(name), unique=True),
    )


class Player(Base):
    __tablename__ = "player"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    number = Column(Integer, nullable=True)
    gender = Column(String, nullable=False, default="other")  # "male" | "female" | "other"
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    memberships = relationship(
        "TeamPlayer", cascade="all, delete-orphan", back_populates="player"
    )


class TeamPlayer(Base):
    __tablename__ = "team_player"
    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("team.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("player.id", ondelete="CASCADE"), nullable=False)

    team = relationship("Team", back_populates="memberships")
    player = relationship("Player", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_team_player_team_id_player_id"),
    )


class Game(Base):
    __tablename__ = "game"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    team_id = Column(Integer, ForeignKey("team.id", ondelete="SET NULL"), nullable=True)
    team_name = Column(String, nullable=False)
    opponent_name = Column(String, nullable=False)
    team_size = Column(Integer, nullable=False, default=7)
    gender_rule = Column(String, nullable=False, default="none")  # "none" | "offense" | "endzone" | "abba"
    starting_puller = Column(String, nullable=False, default="our")  # "our" | "opponent"
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    points = relationship(
        "Point",
        cascade="all, delete-orphan",
        order_by="Point.point_number",
        back_populates="game",
    )


class Point(Base):
    __tablename__ = "point"
    id = Column(Integer, primary_key=True, autoincrement=True)
    game_id = Column(Integer, ForeignKey("game.id", ondelete="CASCADE"), nullable=False)
    point_number = Column(Integer, nullable=False)
    starting_o_line = Column(Boolean, nullable=False)
    lineup = Column(JSON, nullable=True)  # [{"playerId": int, "role": "male" | "female"}]
    gender_ratio = Column(String, nullable=True)  # "<m>m<f>f"
    target_ratio = Column(String, nullable=True)
    our_score_after = Column(Integer, nullable=True)
    opponent_score_after = Column(Integer, nullable=True)
    scored_by = Column(String, nullable=True)  # "our" | "opponent", from the scoring event

    game = relationship("Game", back_populates="points")
    events = relationship(
        "PointEvent",
        cascade="all, delete-orphan",
        order_by="PointEvent.sequence_order",
        back_populates="point",
    )

    __table_args__ = (
        UniqueConstraint("game_id", "point_number", name="uq_point_game_id_point_number"),
    )


class PointEvent(Base):
    __tablename__ = "point_event"
    id = Column(Integer, primary_key=True, autoincrement=True)
    point_id = Column(Integer, ForeignKey("point.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String, nullable=False)
    thrower_id = Column(Integer, ForeignKey("player.id"), nullable=True)
    receiver_id = Column(Integer, ForeignKey("player.id"), nullable=True)
    defender_id = Column(Integer, ForeignKey("player.id"), nullable=True)
    sequence_order = Column(Integer, nullable=False)
    # Set to "pass" when a trailing pass was converted into a drop or goal.
    converted_from = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    point = relationship("Point", back_populates="events")

    __table_args__ = (
        UniqueConstraint(
            "point_id", "sequence_order", name="uq_point_event_point_id_sequence_order"
        ),
    )
