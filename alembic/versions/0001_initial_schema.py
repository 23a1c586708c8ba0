"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONB = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_admins_id", "admins", ["id"])

    op.create_table(
        "quizzes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("join_code", sa.String(6), nullable=True),
        sa.Column("displayed_on_tv", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("demo_image_url", sa.String(), nullable=True),
        sa.Column("rules_image_url", sa.String(), nullable=True),
        sa.Column("thanks_image_url", sa.String(), nullable=True),
        sa.Column("final_image_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_quizzes_id", "quizzes", ["id"])
    op.create_index("ix_quizzes_join_code", "quizzes", ["join_code"], unique=True)

    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order_num", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("options", JSONB, nullable=False),
        sa.Column("correct_answer", sa.String(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("time_limit_sec", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("timer_position", sa.String(), nullable=False, server_default="center"),
        sa.Column("question_type", sa.String(), nullable=False, server_default="choice"),
        sa.Column("weight", sa.Float(), nullable=False, server_default="1"),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_quiz_id", "questions", ["quiz_id"])

    op.create_table(
        "slides",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=True),
        sa.Column("video_url", sa.String(), nullable=True),
        sa.Column("video_layout", JSONB, nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_slides_id", "slides", ["id"])
    op.create_index("ix_slides_question_id", "slides", ["question_id"])

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("telegram_chat_id", sa.BigInteger(), nullable=True),
        sa.Column("is_kicked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_bot", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("registered_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_teams_id", "teams", ["id"])
    op.create_index("ix_teams_quiz_id", "teams", ["quiz_id"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id", ondelete="CASCADE"), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=False),
        sa.Column("awarded_score", sa.Float(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("question_id", "team_id", name="uq_answers_question_team"),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    op.create_index("ix_answers_question_id", "answers", ["question_id"])
    op.create_index("ix_answers_team_id", "answers", ["team_id"])

    op.create_table(
        "game_state",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("quiz_id", sa.Integer(), sa.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("current_question_id", sa.Integer(), sa.ForeignKey("questions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("current_slide", sa.String(), nullable=False, server_default="question"),
        sa.Column("current_slide_id", sa.Integer(), sa.ForeignKey("slides.id", ondelete="SET NULL"), nullable=True),
        sa.Column("timer_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="lobby"),
        sa.Column("registration_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("results_reveal_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("show_bots_on_tv", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_game_state_id", "game_state", ["id"])


def downgrade() -> None:
    op.drop_table("game_state")
    op.drop_table("answers")
    op.drop_table("teams")
    op.drop_table("slides")
    op.drop_table("questions")
    op.drop_table("quizzes")
    op.drop_table("admins")
