from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ArxivNote(BaseModel):
    """A single note on the paper."""

    model_config = ConfigDict(populate_by_name=True)

    note: str = Field(..., description="The note content")
    page_numbers: List[int] = Field(
        default_factory=list,
        alias="pageNumbers",
        description="The page numbers the note refers to",
    )


class PaperNotes(BaseModel):
    """A list of notes taken on the paper."""

    notes: List[ArxivNote] = Field(..., description="Notes on the paper")


class QuestionAnswer(BaseModel):
    """The answer to the question."""

    model_config = ConfigDict(populate_by_name=True)

    answer: str = Field(..., description="The answer to the question")
    followup_questions: List[str] = Field(
        default_factory=list,
        alias="followupQuestions",
        description="Followup questions the student should also ask",
    )


class ExampleCode(BaseModel):
    """Example code for the documentation of a class."""

    code: str = Field(..., description="The example code")


# ---- HTTP payloads ----


class ProcessPaperRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    paper_url: str = Field(..., alias="paperUrl")
    name: str = Field(..., alias="paperName")


class QARequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    paper_url: str = Field(..., alias="paperUrl")
    name: str


class PaperInfo(BaseModel):
    name: str
    arxiv_url: str
    created_at: str
