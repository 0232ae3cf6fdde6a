from .validation_service import (
    ValidationService,
    ValidationSummary,
    summarize,
    validation_service,
)

__all__ = ["ValidationService", "ValidationSummary", "summarize", "validation_service"]
