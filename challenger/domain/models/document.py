"""Strategy document models."""

from datetime import datetime
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict

from challenger.domain.models.insights import Insights
from challenger.domain.models.persona import PersonaId


class DocumentTemplate(BaseModel):
    """Strategy document template: a title and ordered section names."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    sections: Tuple[str, ...]


class DocumentMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    user_name: str
    company_name: str
    document_type: str
    persona: PersonaId
    word_count: int


class Document(BaseModel):
    """Synthesized strategy document.

    Attributes:
        title: Template title
        sections: Section name -> generated content, in template order
        metadata: Provenance and word count
        content: Rendered markdown
        insights: Insights the document was built from
    """

    model_config = ConfigDict(frozen=True)

    title: str
    sections: Dict[str, str]
    metadata: DocumentMetadata
    content: str
    insights: Insights
