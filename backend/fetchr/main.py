import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fetchr.api import router
from fetchr.config import settings
from fetchr.core.errors import FetchrError, RecordNotFoundError, TransportError

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
if settings.log_file:
    try:
        log_path = Path(settings.log_file).expanduser().resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)
    except OSError as e:
        logging.getLogger(__name__).warning("Failed to init file logging: %s", e)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

# The desktop shell loads the UI from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FetchrError)
async def fetchr_error_handler(request: Request, exc: FetchrError):
    if isinstance(exc, RecordNotFoundError):
        status_code = 404
    elif isinstance(exc, TransportError):
        status_code = 502
    else:
        status_code = 400
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.kind, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "kind": exc.kind})


app.include_router(router, prefix="/api")

@app.get("/")
def health_check():
    return {"status": "Fetchr Engine Running"}
