import base64
from functools import lru_cache
from io import BytesIO
import logging
import os

from fastapi import FastAPI, File, Form, HTTPException, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, Field

from tap_lens import __version__
from tap_lens.backend import SupabaseBackend
from tap_lens.core import build_pipeline
from tap_lens.exceptions import AuthenticationError
from tap_lens.normalization.beer_types import BeerTypeVocabulary
from tap_lens.pipeline import MenuPipeline, PipelineConfig
from tap_lens.schema import BarContext, BeerInsertPayload, CandidateBeer, MenuScanResult
from tap_lens.submission import build_insert_payloads, default_selection

app = FastAPI(title="tap-lens API", version=__version__)
logger = logging.getLogger(__name__)

raw_origins = os.getenv("FRONTEND_ORIGINS", "*")
allow_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
MAX_IMAGE_BYTES = int(os.getenv("MAX_IMAGE_BYTES", str(8 * 1024 * 1024)))
ALLOWED_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
CONFIG = PipelineConfig.from_env()

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def _backend() -> SupabaseBackend | None:
    return SupabaseBackend.from_env()


@lru_cache(maxsize=1)
def _vocabulary() -> BeerTypeVocabulary:
    backend = _backend()
    return BeerTypeVocabulary(
        loader=backend.fetch_beer_types if backend is not None else None,
        dictionary_version=CONFIG.dictionary_version,
    )


def _pipeline(*, image_provider: bool = True) -> MenuPipeline:
    return build_pipeline(
        CONFIG,
        backend=_backend(),
        vocabulary=_vocabulary(),
        image_provider=image_provider,
    )


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


class ScanRequest(BaseModel):
    imageBase64: str
    barId: str | None = None
    barName: str | None = None
    barIsBrewery: bool = False
    attributeToHouse: bool | None = None


class ParseTextRequest(BaseModel):
    text: str = Field(min_length=1)
    barId: str | None = None
    barName: str | None = None
    barIsBrewery: bool = False
    attributeToHouse: bool | None = None


class ScanMetadata(BaseModel):
    provider: str | None = None
    parser: str | None = None


class ScanResponse(BaseModel):
    candidates: list[CandidateBeer]
    defaultSelected: list[int] = Field(default_factory=list)
    hallucinationSuspected: bool = False
    message: str | None = None
    metadata: ScanMetadata


class PayloadRequest(BaseModel):
    barId: str = Field(min_length=1)
    candidates: list[CandidateBeer]
    breweryIds: dict[str, int] = Field(default_factory=dict)


class PayloadResponse(BaseModel):
    rows: list[BeerInsertPayload]
    skipped: int = 0


class BeerTypesResponse(BaseModel):
    total: int
    types: list[str]


def _validate_payload_size(payload: bytes) -> None:
    if len(payload) > MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="image too large")


def _validate_multipart_content_type(content_type: str | None) -> None:
    if not content_type:
        raise HTTPException(status_code=400, detail="image file is required")
    normalized = content_type.split(";")[0].strip().lower()
    if normalized not in ALLOWED_MIME_TYPES:
        raise HTTPException(status_code=400, detail="unsupported image content type")


def _decode_base64_image(image_base64: str) -> bytes:
    value = image_base64.strip()
    if not value:
        raise HTTPException(status_code=400, detail="imageBase64 is required")

    # data:image/jpeg;base64,<payload>
    if value.startswith("data:"):
        _, sep, value = value.partition(",")
        if not sep:
            raise HTTPException(status_code=400, detail="invalid imageBase64 data URL")

    try:
        payload = base64.b64decode(value, validate=True)
    except Exception as exc:
        raise HTTPException(status_code=400, detail="invalid imageBase64 encoding") from exc

    if not payload:
        raise HTTPException(status_code=400, detail="empty file")
    _validate_payload_size(payload)
    return payload


def _bar_context(bar_id: str | None, bar_name: str | None, is_brewery: bool) -> BarContext | None:
    if not bar_name or not bar_name.strip():
        return None
    return BarContext(id=bar_id, name=bar_name.strip(), is_brewery=is_brewery)


def _scan_response(result: MenuScanResult, metadata: dict[str, str]) -> ScanResponse:
    selected = {id(beer) for beer in default_selection(result.candidates)}
    return ScanResponse(
        candidates=result.candidates,
        defaultSelected=[index for index, beer in enumerate(result.candidates) if id(beer) in selected],
        hallucinationSuspected=result.hallucination_suspected,
        message=result.message,
        metadata=ScanMetadata(provider=metadata.get("provider"), parser=metadata.get("parser")),
    )


@app.get("/beer-types", response_model=BeerTypesResponse)
def beer_types(response: Response) -> BeerTypesResponse:
    terms = _vocabulary().terms
    response.headers["Cache-Control"] = "public, max-age=300"
    return BeerTypesResponse(total=len(terms), types=terms)


@app.post("/menu/scan", response_model=ScanResponse)
async def scan_menu(
    request: Request,
    image: UploadFile | None = File(default=None),
    barId: str | None = Form(default=None),
    barName: str | None = Form(default=None),
    barIsBrewery: bool = Form(default=False),
    attributeToHouse: bool | None = Form(default=None),
) -> ScanResponse:
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            body = ScanRequest.model_validate(await request.json())
        except Exception as exc:
            raise HTTPException(status_code=400, detail="imageBase64 is required in JSON body") from exc
        payload = _decode_base64_image(body.imageBase64)
        barId, barName = body.barId, body.barName
        barIsBrewery, attributeToHouse = body.barIsBrewery, body.attributeToHouse
    else:
        if image is None:
            raise HTTPException(status_code=400, detail="image file is required")
        _validate_multipart_content_type(image.content_type)
        payload = await image.read()
        if not payload:
            raise HTTPException(status_code=400, detail="empty file")
        _validate_payload_size(payload)

    bar = _bar_context(barId, barName, barIsBrewery)
    try:
        pil_image = Image.open(BytesIO(payload))
        pipeline = _pipeline()
        result = await pipeline.process(
            pil_image,
            bar=bar,
            bar_id=None if bar else barId,
            attribute_to_house=attributeToHouse,
        )
        return _scan_response(result, pipeline.get_extraction_metadata())
    except UnidentifiedImageError as exc:
        raise HTTPException(status_code=400, detail="invalid image format") from exc
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("menu scan failed")
        raise HTTPException(status_code=500, detail="internal_error") from exc


@app.post("/menu/parse-text", response_model=ScanResponse)
async def parse_menu_text(body: ParseTextRequest) -> ScanResponse:
    bar = _bar_context(body.barId, body.barName, body.barIsBrewery)
    try:
        pipeline = _pipeline(image_provider=False)
        result = await pipeline.process_text(
            body.text,
            bar=bar,
            bar_id=None if bar else body.barId,
            attribute_to_house=body.attributeToHouse,
        )
    except Exception as exc:
        logger.exception("menu text parse failed")
        raise HTTPException(status_code=500, detail="internal_error") from exc
    return _scan_response(result, pipeline.get_extraction_metadata())


@app.post("/menu/payload", response_model=PayloadResponse)
def menu_payload(body: PayloadRequest) -> PayloadResponse:
    rows = build_insert_payloads(body.candidates, body.barId, body.breweryIds)
    return PayloadResponse(rows=rows, skipped=len(body.candidates) - len(rows))
