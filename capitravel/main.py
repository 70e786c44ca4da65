import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from capitravel.api import experiences
from capitravel.core.database import create_db_and_tables
from capitravel.core.exceptions import ExperienceServiceError
from capitravel.repositories.factory import StoreFactory

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("capitravel.api")


app = FastAPI(title="Capitravel Experiences API", version="1.0.0")

app.include_router(experiences.router)


@app.on_event("startup")
async def startup_event():
    if StoreFactory.configured_backend() == "memory":
        logger.info("STORE_BACKEND=memory: skipping table creation")
        return
    create_db_and_tables()


@app.exception_handler(ExperienceServiceError)
async def experience_service_error_handler(request: Request, exc: ExperienceServiceError):
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    return {"message": "Capitravel Experiences API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
