import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from receipt_reader.auth import AuthorizationGate, FirebaseTokenVerifier, TokenVerifier
from receipt_reader.config import Settings
from receipt_reader.errors import ReceiptReaderError, make_error_handler
from receipt_reader.logging_config import setup_logging
from receipt_reader.middleware import RequestLoggingMiddleware
from receipt_reader.receipt.base import ReceiptGenerator
from receipt_reader.receipt.factory import get_receipt_generator
from receipt_reader.receipt.reader import ReceiptReader
from receipt_reader.routes import receipts


def create_app(
    settings: Settings | None = None,
    verifier: TokenVerifier | None = None,
    generator: ReceiptGenerator | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()

    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=0.1,
            send_default_pii=False,
        )

    logger = setup_logging(settings.log_level)

    app = FastAPI(title="Receipt Reader API", version="0.1.0")
    app.state.settings = settings
    app.state.gate = AuthorizationGate(verifier or FirebaseTokenVerifier(settings))
    app.state.reader = ReceiptReader(settings, generator or get_receipt_generator(settings))
    app.add_exception_handler(ReceiptReaderError, make_error_handler(settings.expose_upstream_errors))

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(receipts.router, prefix="/api")

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info(
        "Receipt reader configured",
        extra={"extra_data": {"model": settings.model, "location": settings.location}},
    )
    return app


app = create_app()
