import logging
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from .schemas import AdvancedReportResponse, ReportErrorResponse
# Service functions that contain the business logic
from . import service as report_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    responses={500: {"model": ReportErrorResponse, "description": "Report data unavailable"}},
)


def _report_failure() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ReportErrorResponse(error="Failed to fetch reports data").model_dump(by_alias=True),
    )


@router.get("/advanced", response_model=AdvancedReportResponse)
async def get_advanced_report():
    try:
        report = await report_service.generate_advanced_report()
    except report_service.ReportSourceUnavailable:
        logger.exception("Reports fetch error")
        return _report_failure()
    except Exception:
        # Any other failure still answers with the error envelope
        logger.exception("Unexpected error while building the advanced report")
        return _report_failure()
    return AdvancedReportResponse(data=report)
