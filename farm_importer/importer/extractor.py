from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from openai import OpenAI

from farm_importer import config
from farm_importer.errors import MissingCredentialError, ModelResponseError
from farm_importer.taxonomy import FARM_CATEGORIES
from .contract import ExtractedRecord, RawItem
from .normalizer import normalize_fields
from .validator import validate_record

# OpenAI clients keyed by API key, created on first use
_clients: Dict[str, OpenAI] = {}

DESCRIPTION_PROMPT_CHARS = 2000

SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts structured data from Minecraft "
    "farm tutorial videos. Always return valid JSON only."
)

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def get_client(api_key: Optional[str] = None) -> OpenAI:
    """
    Lazily initialize an OpenAI client so that importing this module
    does not explode if the key is missing (e.g. during local tests).
    """
    key = (api_key or config.OPENAI_API_KEY or "").strip()
    if not key:
        logging.error("OPENAI_API_KEY is not set; extraction is unavailable.")
        raise MissingCredentialError("OpenAI API key is not set")
    if key not in _clients:
        _clients[key] = OpenAI(api_key=key)
    return _clients[key]


def build_prompt(item: RawItem) -> str:
    """Instruction for one video: its text plus the exact JSON shape we want back."""
    description = item.description[:DESCRIPTION_PROMPT_CHARS]
    categories = ", ".join(FARM_CATEGORIES)

    return f"""You are analyzing a Minecraft farm tutorial video. Extract structured data from the following video information:

Title: {item.title}
Description: {description}
Channel: {item.channel_title}

Extract the following information and return ONLY valid JSON (no markdown, no code blocks):
{{
  "title": "Farm title (use video title if appropriate, or create a descriptive title)",
  "description": "Brief description of the farm (2-3 sentences)",
  "category": "One of these exact categories: {categories}",
  "platform": ["Java"] or ["Bedrock"] or ["Java", "Bedrock"] - determine from title/description,
  "versions": ["1.21"] or similar - extract Minecraft version(s) mentioned,
  "materials": "Simple text format like '64 Cobbled Deepslate; 32 Glass; 16 Hopper' - extract all materials with quantities",
  "optional_materials": "Optional materials if mentioned, same format",
  "tags": ["tag1", "tag2"] - relevant tags like "iron-farm", "mob-farm", "efficient",
  "farmable_items": ["Item Name"] - what items does this farm produce,
  "estimated_time": 120 - build time in minutes if mentioned,
  "required_biome": "Biome name if specific biome required",
  "farm_designer": "{item.channel_title}" - the channel name,
  "drop_rate_per_hour": "Item: 3600/hour" - if mentioned,
  "notes": "Any important notes or requirements"
}}

Rules:
- If category is unclear, choose the closest match from the list
- Platform must be "Java" or "Bedrock" or both
- Versions should be in format like "1.21", "1.20.6"
- Materials should be in simple text format: "quantity Item Name; quantity Item Name"
- If information is missing, use null or empty string
- Be accurate and only extract information that is clearly stated or implied

Return ONLY the JSON object, nothing else."""


def parse_model_json(text: str) -> Dict[str, Any]:
    """
    Decode the model reply into a dict.

    1. Strip markdown code fences and try a direct decode.
    2. Otherwise decode the first brace-delimited object found in the text,
       ignoring any prose around it.
    """
    cleaned = _FENCE.sub("", text or "").strip()
    if not cleaned:
        raise ModelResponseError("Empty response from AI")

    try:
        parsed = json.loads(cleaned)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            parsed, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, dict):
            return parsed
        start = cleaned.find("{", start + 1)

    raise ModelResponseError("Failed to parse AI response")


def request_completion(client: OpenAI, prompt: str, *, model: str, timeout: float) -> str:
    response = client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        temperature=0.3,
        max_tokens=2000,
        timeout=timeout,
    )
    return response.choices[0].message.content or ""


def _extract(
    item: RawItem,
    client: Optional[OpenAI],
    api_key: Optional[str],
    model: str,
    timeout: float,
    confidence: float,
) -> ExtractedRecord:
    client = client or get_client(api_key)
    content = request_completion(client, build_prompt(item), model=model, timeout=timeout)
    raw = parse_model_json(content)

    fields = normalize_fields(raw, title=item.title, channel_title=item.channel_title)
    record = ExtractedRecord(**fields, video_url=item.url, confidence=confidence)

    is_valid, err = validate_record(record.to_dict())
    if not is_valid:
        record.flag(f"Schema validation failed: {err}")
    return record


def extract_record(
    item: RawItem,
    client: Optional[OpenAI] = None,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_confidence: Optional[float] = None,
    fallback_confidence: Optional[float] = None,
    timeout: Optional[float] = None,
) -> ExtractedRecord:
    """
    Turn one video into exactly one ExtractedRecord. Never raises.

    Any failure (missing key, API error, timeout, undecodable reply) yields
    the fallback record with lowered confidence and the error recorded.
    """
    base = config.BASE_CONFIDENCE if base_confidence is None else base_confidence
    degraded = config.FALLBACK_CONFIDENCE if fallback_confidence is None else fallback_confidence

    try:
        return _extract(
            item,
            client,
            api_key,
            model or config.OPENAI_MODEL,
            config.REQUEST_TIMEOUT_SECONDS if timeout is None else timeout,
            base,
        )
    except Exception as e:  # noqa: BLE001
        logging.error("[EXTRACTION ERROR] %s: %s", item.video_id, e)
        return ExtractedRecord.fallback(item, str(e) or type(e).__name__, degraded)
