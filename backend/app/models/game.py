import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base

class Game(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    date: Mapped[sa.Date] = mapped_column(sa.Date, nullable=False, server_default=sa.text("CURRENT_DATE"))
    location: Mapped[str | None] = mapped_column(sa.String(255), nullable=True)
    game_type: Mapped[str] = mapped_column(sa.String(100), nullable=False, server_default="3 Patti")
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))
    updated_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))

    __table_args__ = (
        sa.Index("idx_games_date", "date"),
    )

    results = relationship("PlayerGameResult", back_populates="game", passive_deletes=True)

class PlayerGameResult(Base):
    __tablename__ = "player_game_results"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    game_id: Mapped[int] = mapped_column(sa.Integer, sa.ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False)  # 1 = winner
    created_at: Mapped[sa.DateTime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))

    __table_args__ = (
        sa.UniqueConstraint("player_id", "game_id", name="uq_player_game_results_player_game"),
        sa.CheckConstraint("position >= 1", name="ck_player_game_results_position"),
        sa.Index("idx_player_game_results_player_id", "player_id"),
        sa.Index("idx_player_game_results_game_id", "game_id"),
        sa.Index("idx_player_game_results_position", "position"),
    )

    player = relationship("Player", back_populates="results")
    game = relationship("Game", back_populates="results")
