"""Receipt extraction through a vision-capable chat model.

Model output is untrusted. Each configured model is tried in order and the
first response that parses and validates wins; every other outcome is
reported as a tagged attempt instead of an exception.
"""

from __future__ import annotations

import base64
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Sequence

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from receiptsplit.logging import get_logger
from receiptsplit.models import StoredImage
from receiptsplit.schemas import ExtractedReceipt
from receiptsplit.services.normalize import normalize_item
from receiptsplit.services.storage import ImageStore

SYSTEM_PROMPT = """You are an expert receipt parser specializing in extracting accurate data from restaurant and retail receipts.

ANALYSIS PROCESS:
1. Scan the entire receipt image carefully
2. Identify the merchant name (usually at the top)
3. Look for the date (various formats accepted)
4. Find ALL line items that represent actual products/food/drinks purchased
5. For each item, extract: name, quantity, and individual unit price
6. Extract tax and tip percentages if present

RULES:
- ONLY extract purchased items; EXCLUDE taxes, tips, service charges, discounts, totals, subtotals
- If quantity is not shown, use qty = 1
- For bundled lines (e.g. "2 Burgers $25.98") give the per-unit price (12.99)
- Prices are positive numbers; use 0 only if truly unclear
- Quantities are positive integers
- Percentages are decimal fractions (0.0875 for 8.75%, 0.18 for 18%)
- Keep the receipt currency; do not convert

Return ONLY valid JSON with no explanations:

{
  "merchant": "Restaurant Name",
  "date": "2024-01-01",
  "currency": "USD",
  "items": [
    {"name": "Item Name", "qty": 1, "price": 12.99}
  ],
  "taxPct": 0.0875,
  "tipPct": 0.18
}"""

USER_PROMPT = (
    "Please analyze this receipt image carefully and extract all items with their exact "
    "quantities and prices. Return only valid JSON."
)

MAX_TOKENS = 1500

_FENCE = re.compile(r"```(?:json)?")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


class ExtractionStatus(str, Enum):
    OK = "ok"
    EMPTY_RESPONSE = "empty_response"
    PARSE_ERROR = "parse_error"
    INVALID = "invalid"
    API_ERROR = "api_error"


@dataclass(slots=True, frozen=True)
class ModelStrategy:
    name: str
    # newer models take max_completion_tokens and only the default temperature
    completion_tokens_param: bool = False

    def request_params(self) -> dict[str, Any]:
        if self.completion_tokens_param:
            return {"temperature": 1, "max_completion_tokens": MAX_TOKENS}
        return {"temperature": 0.1, "max_tokens": MAX_TOKENS}


@dataclass(slots=True, frozen=True)
class ExtractionAttempt:
    strategy: str
    status: ExtractionStatus
    error: Optional[str] = None


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    status: ExtractionStatus
    receipt: Optional[ExtractedReceipt] = None
    model: Optional[str] = None
    attempts: Sequence[ExtractionAttempt] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status == ExtractionStatus.OK

    @property
    def error(self) -> Optional[str]:
        if self.ok or not self.attempts:
            return None
        return self.attempts[-1].error


class ReceiptExtractor(Protocol):
    async def extract(self, image: bytes, content_type: str) -> ExtractionResult: ...


class ResponseError(Exception):
    def __init__(self, status: ExtractionStatus, message: str) -> None:
        super().__init__(message)
        self.status = status


def build_strategies(models: Iterable[str]) -> list[ModelStrategy]:
    return [
        ModelStrategy(name=name, completion_tokens_param=name.startswith(("gpt-5", "o1", "o3", "o4")))
        for name in models
    ]


def to_data_url(image: bytes, content_type: str) -> str:
    encoded = base64.b64encode(image).decode("ascii")
    return f"data:{content_type or 'image/png'};base64,{encoded}"


def clean_json_text(raw: str) -> str:
    cleaned = _FENCE.sub("", raw).strip()
    if not cleaned.endswith(("}", "]")):
        last_brace = cleaned.rfind("}")
        if last_brace > 0:
            cleaned = cleaned[: last_brace + 1]
    return cleaned


def parse_json_payload(raw: str) -> Any:
    cleaned = clean_json_text(raw)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as first:
        repaired = _TRAILING_COMMA.sub(r"\1", cleaned)
        repaired = re.sub(r",\s*$", "", repaired)
        repaired = re.sub(r"\s+", " ", repaired)
        try:
            return json.loads(repaired)
        except json.JSONDecodeError:
            raise ResponseError(ExtractionStatus.PARSE_ERROR, f"invalid JSON: {first}") from first


def validate_payload(payload: Any) -> ExtractedReceipt:
    if not isinstance(payload, dict):
        raise ResponseError(ExtractionStatus.INVALID, "response is not a JSON object")

    data = dict(payload)
    raw_items = data.get("items")
    if isinstance(raw_items, list):
        items = []
        for position, raw in enumerate(raw_items, start=1):
            item = normalize_item(raw, position)
            items.append({"name": item.name, "qty": item.quantity, "price": item.unit_price})
        data["items"] = items
    if data.get("currency") is None:
        data.pop("currency", None)

    try:
        return ExtractedReceipt.model_validate(data)
    except ValidationError as exc:
        raise ResponseError(ExtractionStatus.INVALID, str(exc)) from exc


class OpenAIReceiptExtractor:
    def __init__(self, client: AsyncOpenAI, strategies: Sequence[ModelStrategy]) -> None:
        if not strategies:
            raise ValueError("at least one extraction strategy is required")
        self._client = client
        self._strategies = list(strategies)
        self._log = get_logger(__name__)

    @property
    def strategies(self) -> list[ModelStrategy]:
        return list(self._strategies)

    async def extract(self, image: bytes, content_type: str) -> ExtractionResult:
        image_url = to_data_url(image, content_type)
        attempts: list[ExtractionAttempt] = []

        for strategy in self._strategies:
            self._log.info("extract.attempt", model=strategy.name)
            try:
                receipt = await self._run(strategy, image_url)
            except ResponseError as exc:
                self._log.warning("extract.failed", model=strategy.name, status=exc.status.value, error=str(exc))
                attempts.append(ExtractionAttempt(strategy.name, exc.status, str(exc)))
                continue
            except OpenAIError as exc:
                self._log.warning("extract.api_error", model=strategy.name, error=str(exc))
                attempts.append(ExtractionAttempt(strategy.name, ExtractionStatus.API_ERROR, str(exc)))
                continue

            attempts.append(ExtractionAttempt(strategy.name, ExtractionStatus.OK))
            self._log.info("extract.ok", model=strategy.name, items=len(receipt.items))
            return ExtractionResult(
                status=ExtractionStatus.OK,
                receipt=receipt,
                model=strategy.name,
                attempts=tuple(attempts),
            )

        self._log.error("extract.exhausted", attempts=len(attempts))
        return ExtractionResult(status=attempts[-1].status, attempts=tuple(attempts))

    async def _run(self, strategy: ModelStrategy, image_url: str) -> ExtractedReceipt:
        response = await self._client.chat.completions.create(
            model=strategy.name,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": USER_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
                    ],
                },
            ],
            response_format={"type": "json_object"},
            **strategy.request_params(),
        )

        raw = response.choices[0].message.content if response.choices else None
        if not raw or not raw.strip():
            raise ResponseError(ExtractionStatus.EMPTY_RESPONSE, f"{strategy.name} returned empty response")

        return validate_payload(parse_json_payload(raw))


async def scan_stored_image(
    storage: ImageStore,
    extractor: ReceiptExtractor,
    stored: StoredImage,
    content_type: str = "image/jpeg",
) -> ExtractionResult:
    image = await storage.fetch(stored.key)
    return await extractor.extract(image, content_type)
