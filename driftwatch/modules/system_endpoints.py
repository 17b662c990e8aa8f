import logging
from typing import Callable, List, Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from driftwatch.core.migrations.errors import ConfigurationError
from driftwatch.core.migrations.migration_models import CheckOutcome, CheckStatus
from driftwatch.modules.settings import CheckSettings
from driftwatch.services.database.drift_checker import DriftChecker, configuration_failure

logger = logging.getLogger("driftwatch.api")

router = APIRouter(prefix="/api/system", tags=["System"])

UNHEALTHY = {CheckStatus.UNKNOWN, CheckStatus.ERROR}


class DriftReportModel(BaseModel):
    in_sync: bool
    missing_count: int
    missing: List[str]
    failed: List[str]
    unexpected: List[int]
    inventory_count: int
    applied_count: int


class DriftCheckResponse(BaseModel):
    status: str
    exit_code: int
    target: str
    migrations_dir: str
    checked_at: str
    report: Optional[DriftReportModel] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def from_outcome(cls, outcome: CheckOutcome) -> "DriftCheckResponse":
        return cls(**outcome.to_dict())


def get_settings_loader() -> Callable[[], CheckSettings]:
    """
    Returns the callable that resolves settings per request. Override it in
    tests or embedding apps; a ConfigurationError it raises becomes an ERROR
    outcome rather than a server error.
    """
    return CheckSettings.from_env


@router.get("/migrations/drift", response_model=DriftCheckResponse)
async def migration_drift(load_settings: Callable[[], CheckSettings] = Depends(get_settings_loader)):
    """
    Compares migration files against the tracking table.
    Returns 503 when the answer is unknown or the check itself failed.
    """
    try:
        settings = load_settings()
    except ConfigurationError as e:
        outcome = configuration_failure(e)
    else:
        outcome = await DriftChecker(settings).run()
    body = DriftCheckResponse.from_outcome(outcome)
    if outcome.status in UNHEALTHY:
        logger.error(f"Drift check failed: {outcome.error}")
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
