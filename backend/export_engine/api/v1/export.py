from fastapi import APIRouter, Depends
from fastapi.responses import Response
from urllib.parse import quote
from export_engine.schema import DownloadRequest, EstimateResponse, ScanRequest, ScanResponse
from export_engine.services.export_service import ExportService
from export_engine.api.deps import get_export_service

router = APIRouter(prefix="/export", tags=["export"])

@router.post("/scan", response_model=ScanResponse)
def scan_view(
    request: ScanRequest,
    service: ExportService = Depends(get_export_service)
):

    return service.scan(request)

@router.post("/estimate", response_model=EstimateResponse)
def estimate_export(
    request: DownloadRequest,
    service: ExportService = Depends(get_export_service)
):

    return service.estimate(request)

@router.post("/download")
def download_export(
    request: DownloadRequest,
    service: ExportService = Depends(get_export_service)
):

    file, notification = service.download(request)

    headers = {
        "Content-Disposition": f"attachment; filename=\"{file.filename}\"; filename*=UTF-8''{quote(file.filename)}",
        "X-Export-Notification": quote(notification.message) if notification else "",
    }
    return Response(content=file.content, media_type=file.media_type, headers=headers)
