import logging
from typing import Optional

from fastapi import Depends, FastAPI, File, Query, Request, Response, UploadFile

from .config import ConverterSettings, get_settings
from .logging_setup import setup_logging
from .models import HealthResponse, PreviewPage, StatusResponse
from .serializers import ExportFormat
from .state import ConverterSession

logger = logging.getLogger(__name__)


def create_app(settings: Optional[ConverterSettings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    app = FastAPI(
        title="csv-converter",
        description="Convert an uploaded CSV file to JSON, XLSX or XML",
        version="0.1.0",
    )
    app.state.session = ConverterSession(settings)

    def get_session(request: Request) -> ConverterSession:
        return request.app.state.session

    @app.get("/health", response_model=HealthResponse)
    def health():
        return {"ok": True}

    @app.post("/upload", response_model=StatusResponse)
    async def upload(
        response: Response,
        file: UploadFile = File(...),
        session: ConverterSession = Depends(get_session),
    ):
        logger.info("Received %r (%s)", file.filename, file.content_type)
        await session.ingest_upload(file.filename, file.content_type, file.read)

        status = session.status()
        if status.status == "failed":
            response.status_code = 422
        return status

    @app.get("/status", response_model=StatusResponse)
    def status(session: ConverterSession = Depends(get_session)):
        return session.status()

    @app.get("/preview", response_model=PreviewPage)
    def preview(
        page: Optional[int] = Query(default=None),
        page_size: Optional[int] = Query(default=None, ge=1),
        session: ConverterSession = Depends(get_session),
    ):
        return session.preview(page=page, page_size=page_size)

    @app.get("/download/{fmt}")
    def download(fmt: ExportFormat, session: ConverterSession = Depends(get_session)):
        artifact = session.export(fmt)
        if artifact is None:
            return Response(status_code=204)
        return Response(
            content=artifact.content,
            media_type=artifact.media_type,
            headers={"Content-Disposition": f'attachment; filename="{artifact.filename}"'},
        )

    return app


app = create_app()
