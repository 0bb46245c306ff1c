import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, TIMESTAMP, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class ArxivPaper(Base):
    __tablename__ = "arxiv_papers"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, server_default=func.now())
    name: Mapped[str] = mapped_column(String)
    arxiv_url: Mapped[str] = mapped_column(String, unique=True, index=True)
    paper: Mapped[str] = mapped_column(Text)
    # list of {"note": str, "pageNumbers": [int]}
    notes: Mapped[list] = mapped_column(JSON, default=list)


class ArxivQuestionAnswer(Base):
    __tablename__ = "arxiv_question_answering"
    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, server_default=func.now())
    question: Mapped[str] = mapped_column(Text)
    answer: Mapped[str] = mapped_column(Text)
    context: Mapped[str] = mapped_column(Text)
    followup_questions: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
