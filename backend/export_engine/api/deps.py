from export_engine.services.export_service import ExportService, export_service


def get_export_service() -> ExportService:
    return export_service
