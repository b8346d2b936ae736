from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from rxscan.api.routes import router as api_router
from rxscan.config import CORS_ALLOW_ORIGINS
from starlette.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

app = FastAPI(
    title="Prescription Scan Service",
    version="0.1.0",
    description="OCR prescriptions and extract patient info and medications (best-effort).",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    data = generate_latest()  # default registry
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)

app.include_router(api_router, prefix="/api")
