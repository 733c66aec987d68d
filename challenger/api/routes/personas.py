"""
Persona catalog routes.
"""

from fastapi import APIRouter

from challenger.api.dependencies import PersonaCatalogDep
from challenger.api.schemas import PersonaListResponse, PersonaResponse

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get("", response_model=PersonaListResponse)
async def list_personas(personas: PersonaCatalogDep) -> PersonaListResponse:
    """List the challenger personas."""
    return PersonaListResponse(
        personas=[PersonaResponse.from_definition(p) for p in personas.all()]
    )
