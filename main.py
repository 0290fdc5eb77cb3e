import sys
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bls_import.config import LOG_LEVEL
from bls_import.presentation.api.v1.admin_routes import router as admin_router
from bls_import.presentation.api.v1.attendance_routes import router as attendance_router
from bls_import.infrastructure.db.session import Base, engine
from bls_import.infrastructure.db.models import QuestionModel, ChecklistModel, ChecklistItemModel

# Create tables
Base.metadata.create_all(bind=engine)

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(title="BLS Import API")

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred."}
    )

# Include routers
app.include_router(admin_router, prefix="/admin", tags=["Admin (Imports)"])
app.include_router(attendance_router, prefix="/attendance", tags=["Attendance"])


@app.get("/")
def root():
    return {"message": "Welcome to the BLS Import API"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
