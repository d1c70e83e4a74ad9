from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from app.core.config import settings
from app.core.generation_log_store import get_generation_log, list_generation_logs, save_generation_log
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.schemas.resume_generation import (
    AnalyzeRequest,
    AnalyzeResponse,
    EditedImpactRequest,
    EditedImpactResponse,
    GenerationLog,
    GenerationLogRequest,
    GenerationLogSummary,
    ModifyChangeRequest,
    ModifyChangeResponse,
    ProjectedScoreRequest,
    ProjectedScoreResponse,
    ResumeAnalysisResult,
    ScoreResumeRequest,
    ScoreResumeResponse,
)
from app.scoring.resume_scoring import normalize_impact_points
from app.services.resume_generator_service import (
    ResumeGeneratorError,
    analyze_job_description,
    build_generation_log,
    edited_impact,
    project_score,
    revise_change,
    score_resume,
)
from app.services.tools_llm import ToolsLLMError

router = APIRouter()


def _auth(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    accept_language: str | None = Header(default=None, alias="Accept-Language"),
) -> None:
    check_api_key(x_api_key, accept_language)


def _raise_generator_http_error(exc: Exception) -> None:
    if isinstance(exc, ResumeGeneratorError):
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    if isinstance(exc, ToolsLLMError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    raise exc


@router.post("/resume-generator/score", response_model=ScoreResumeResponse, dependencies=[Depends(_auth)])
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_score(request: Request, payload: ScoreResumeRequest):
    _ = request
    return score_resume(payload)


@router.post("/resume-generator/analyze", response_model=AnalyzeResponse, dependencies=[Depends(_auth)])
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_analyze(request: Request, payload: AnalyzeRequest):
    _ = request
    try:
        return analyze_job_description(payload)
    except (ResumeGeneratorError, ToolsLLMError) as exc:
        _raise_generator_http_error(exc)


@router.post("/resume-generator/normalize", response_model=ResumeAnalysisResult, dependencies=[Depends(_auth)])
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_normalize(request: Request, payload: ResumeAnalysisResult):
    _ = request
    return normalize_impact_points(payload)


@router.post(
    "/resume-generator/projected-score",
    response_model=ProjectedScoreResponse,
    dependencies=[Depends(_auth)],
)
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_projected_score(request: Request, payload: ProjectedScoreRequest):
    _ = request
    return project_score(payload)


@router.post("/resume-generator/edited-impact", response_model=EditedImpactResponse, dependencies=[Depends(_auth)])
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_edited_impact(request: Request, payload: EditedImpactRequest):
    _ = request
    return edited_impact(payload)


@router.post("/resume-generator/modify-change", response_model=ModifyChangeResponse, dependencies=[Depends(_auth)])
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_modify_change(request: Request, payload: ModifyChangeRequest):
    _ = request
    try:
        return revise_change(payload)
    except (ResumeGeneratorError, ToolsLLMError) as exc:
        _raise_generator_http_error(exc)


@router.post(
    "/resume-generator/log",
    response_model=GenerationLog,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(_auth)],
)
@rate_limit(settings.resume_generator_rate_limit)
async def resume_generator_log_create(request: Request, payload: GenerationLogRequest):
    _ = request
    log = build_generation_log(payload)
    save_generation_log(log)
    return log


@router.get("/resume-generator/log", response_model=list[GenerationLogSummary], dependencies=[Depends(_auth)])
async def resume_generator_log_list(limit: int = Query(default=50, ge=1, le=500)):
    return list_generation_logs(limit)


@router.get("/resume-generator/log/{generation_id}", response_model=GenerationLog, dependencies=[Depends(_auth)])
async def resume_generator_log_get(generation_id: str):
    log = get_generation_log(generation_id)
    if log is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Generation log not found.")
    return log
