#main.py
from pathlib import Path
from dotenv import load_dotenv
load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from api.quote_chat import router as quote_chat_router, fallback_response, json_response
from core.database import init_models
from telemetry.logger import log_event
from tradecraft.seed import seed_tradecraft_docs
import tradecraft.models  # noqa: F401  (registers tradecraft_docs on Base)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Quote Agent")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(quote_chat_router)


@app.exception_handler(RequestValidationError)
async def validation_fallback(request: Request, exc: RequestValidationError):
    # Malformed bodies still get a chat message, never a 422
    log_event("quote_chat_error", {"error_code": "VALIDATION", "path": request.url.path})
    return json_response(fallback_response())


@app.on_event("startup")
async def startup():
    await init_models()
    await seed_tradecraft_docs()


@app.get("/")
def health():
    return {"status": "ok"}
