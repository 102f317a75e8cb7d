from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from app.core.config import settings
from app.core.rate_limit import limiter
from app.schemas.lead import (
    CalculateScoreRequest,
    CalculateScoreResponse,
    LeadCreate,
    LeadCreateResponse,
    LeadListResponse,
    LeadPatch,
    LeadUpdateResponse,
    ScoreSummaryResponse,
)
from app.services.lead_capture_service import LeadCaptureService
from app.services.lead_update_service import LeadUpdateService
from app.services.score_service import ScoreService
from app.repositories.lead_repository import LeadRepository
from app.repositories.lead_source_repository import LeadSourceRepository
from app.api.deps import (
    get_lead_capture_service,
    get_lead_update_service,
    get_lead_repo,
    get_score_service,
    get_source_repo,
)

router = APIRouter(prefix="/leads", tags=["Leads"])


@router.get("", response_model=LeadListResponse)
async def list_leads(
    limit: int = Query(50, ge=1, le=500, description="Max rows to return"),
    offset: int = Query(0, ge=0, description="Number of rows to skip"),
    destination: Optional[str] = Query(None, description="'all' disables the filter"),
    assigned_to: Optional[str] = Query(None, description="Assigned employee id"),
    lead_repo: LeadRepository = Depends(get_lead_repo),
) -> LeadListResponse:
    """Newest leads first."""
    leads = await lead_repo.list_leads(
        limit=limit, offset=offset, destination=destination, assigned_to=assigned_to
    )
    total = await lead_repo.count_leads(
        destination=destination, assigned_to=assigned_to
    )
    return LeadListResponse(leads=leads, total=total, limit=limit, offset=offset)


@router.post("", response_model=LeadCreateResponse, status_code=201)
@limiter.limit(settings.LEAD_CAPTURE_RATE_LIMIT)
async def create_lead(
    request: Request,
    lead_data: LeadCreate,
    service: LeadCaptureService = Depends(get_lead_capture_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    source_repo: LeadSourceRepository = Depends(get_source_repo),
) -> LeadCreateResponse:
    """Capture a new lead and score it.

    Rate-limited per client IP.  Business logic is delegated to
    :class:`LeadCaptureService`.
    """
    result = await service.capture_lead(
        lead_data=lead_data, lead_repo=lead_repo, source_repo=source_repo
    )
    return LeadCreateResponse(**result)


@router.post("/calculate-score", response_model=CalculateScoreResponse)
async def calculate_score(
    body: CalculateScoreRequest,
    service: ScoreService = Depends(get_score_service),
) -> CalculateScoreResponse:
    """Rescore a stored lead or preview the score of unsaved lead data."""
    return CalculateScoreResponse(**await service.calculate(body))


@router.get("/calculate-score", response_model=ScoreSummaryResponse)
async def score_summary(
    service: ScoreService = Depends(get_score_service),
) -> ScoreSummaryResponse:
    """Score distribution per priority and lead type, plus the top 10 leads."""
    return ScoreSummaryResponse(**await service.summary())


@router.patch("/{lead_id}", response_model=LeadUpdateResponse)
async def update_lead(
    lead_id: int,
    patch: LeadPatch,
    service: LeadUpdateService = Depends(get_lead_update_service),
    lead_repo: LeadRepository = Depends(get_lead_repo),
    source_repo: LeadSourceRepository = Depends(get_source_repo),
) -> LeadUpdateResponse:
    """Update an existing lead and rescore it.

    Business logic is delegated to :class:`LeadUpdateService`.
    """
    result = await service.update_lead(
        lead_id=lead_id, patch=patch, lead_repo=lead_repo, source_repo=source_repo
    )
    return LeadUpdateResponse(**result)
