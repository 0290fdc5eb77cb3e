from pydantic import BaseModel


class BulkUploadResponse(BaseModel):
    success: bool
    message: str
    total_rows: int
    inserted: int
    failed: int
    errors: list[str] = []
