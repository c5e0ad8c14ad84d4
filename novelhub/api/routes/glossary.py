from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from novelhub.api.deps import get_glossary_service
from novelhub.api.models import BulkDeleteRequest, GlossaryTermModel, GlossaryUpsertRequest, SuccessResponse
from novelhub.core.security import get_current_claims, require_admin
from novelhub.services.glossary import GlossaryService

router = APIRouter(prefix="/api/translator/glossary", tags=["glossary"])
logger = logging.getLogger(__name__)


@router.get("/{novel_id}", response_model=list[GlossaryTermModel], dependencies=[Depends(get_current_claims)])
async def list_terms(novel_id: str, service: GlossaryService = Depends(get_glossary_service)) -> list[GlossaryTermModel]:  # noqa: B008
  """List every glossary term for a novel."""
  return [GlossaryTermModel.from_record(record) for record in await service.list_terms(novel_id)]


@router.post("", response_model=GlossaryTermModel, dependencies=[Depends(require_admin)])
async def upsert_term(payload: GlossaryUpsertRequest, service: GlossaryService = Depends(get_glossary_service)) -> GlossaryTermModel:  # noqa: B008
  """Create or overwrite a term; unknown categories are stored as ``other``."""
  try:
    record = await service.upsert_manual(novel_id=payload.novel_id, term=payload.term, translation=payload.translation, category=payload.category, description=payload.description)
  except ValueError as exc:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
  return GlossaryTermModel.from_record(record)


@router.delete("/{term_id}", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def delete_term(term_id: int, service: GlossaryService = Depends(get_glossary_service)) -> SuccessResponse:  # noqa: B008
  if not await service.delete_term(term_id):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Glossary term not found")
  return SuccessResponse()


@router.post("/bulk-delete", response_model=SuccessResponse, dependencies=[Depends(require_admin)])
async def bulk_delete(payload: BulkDeleteRequest, service: GlossaryService = Depends(get_glossary_service)) -> SuccessResponse:  # noqa: B008
  deleted = await service.bulk_delete(payload.ids)
  logger.info("Bulk-deleted %d glossary terms.", deleted)
  return SuccessResponse(deleted=deleted)
