from typing import Optional

class AppError(Exception):
    status_code: int = 400
    code: str = "APP_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.message = message

class TaxonomyError(AppError):
    code = "TAXONOMY_ERROR"
    status_code = 500

class UnknownGroupError(TaxonomyError):
    code = "UNKNOWN_GROUP"
    status_code = 404

    def __init__(self, group: object):
        super().__init__(f"Unknown property type group: {group!r}")
        self.group = group

class UnknownFieldError(TaxonomyError):
    code = "UNKNOWN_FIELD"
    status_code = 404

    def __init__(self, name: object):
        super().__init__(f"Unknown categorical field: {name!r}")
        self.name = name

class FilterPayloadError(AppError):
    code = "FILTER_PAYLOAD_ERROR"
    status_code = 400
