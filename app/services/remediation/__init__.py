from app.services.remediation.bulk_remediation_service import BulkRemediationService

__all__ = ["BulkRemediationService"]
