from .report_client import ReportClient, ApiError, ContractValidationError
