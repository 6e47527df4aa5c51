# centerline/core/sop.py
import os
import logging
from typing import Optional

import requests

from centerline.core.config import get_setting
from centerline.core.models import Point

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"
DEFAULT_MODEL = "gemini-3-flash-preview"
DEFAULT_API_KEY_ENV = "CENTERLINE_SOP_API_KEY"

EMPTY_RESPONSE_MESSAGE = "Could not generate an SOP. Check the connection."
FAILURE_MESSAGE = "An error occurred while generating the instruction. Please try again later."
MISSING_KEY_MESSAGE = "SOP generation is not configured (no API key set)."


def get_sop_api_key() -> Optional[str]:
    """
    Reads the text-generation API key from the environment variable named by
    'services.sop.api_key_env'.
    """
    env_var_name = get_setting('services.sop.api_key_env', DEFAULT_API_KEY_ENV)
    key = os.environ.get(env_var_name)
    if key:
        logger.debug("Retrieved SOP API key from environment variable.")
        return key
    logger.warning(f"SOP API key environment variable '{env_var_name}' is not set.")
    return None


def build_sop_prompt(point: Point) -> str:
    lines = [
        "I need a short, clear instruction text (SOP) for a machine operator working on a tray packer.",
        "",
        "Point information:",
        f"- Name: {point.name}",
        f"- Zone: {point.zone.value}",
        f"- Target value (centerline): {point.target_value}",
        f"- Tolerance: {point.tolerance}",
        f"- Measure method: {point.measure_method}",
        f"- Criticality: {point.criticality.value}",
        f"- Description: {point.description}",
    ]
    if point.phase_angle:
        lines.append(f"- Phase angle: {point.phase_angle:g} degrees in the 360 cycle.")
    lines += [
        "",
        "Task:",
        "Write a list of 3-4 items for the operator:",
        "1. How to check the value.",
        "2. What the risk is if the value is wrong (focus on crashes when criticality is high).",
        "3. How to adjust it safely.",
        "",
        "Keep the tone professional, direct and safety-focused. Use Markdown for formatting.",
    ]
    return "\n".join(lines)


def _extract_text(payload: dict) -> str:
    parts = []
    for candidate in payload.get('candidates') or []:
        for part in (candidate.get('content') or {}).get('parts') or []:
            text = part.get('text')
            if text:
                parts.append(text)
        if parts:
            break
    return "".join(parts).strip()


def generate_sop(point: Point, session: Optional[requests.Session] = None) -> str:
    """
    Asks the text-generation service for an operator SOP for `point`.

    Never raises: any failure comes back as a human-readable message suitable
    for showing inline next to the point.
    """
    api_key = get_sop_api_key()
    if not api_key:
        return MISSING_KEY_MESSAGE

    endpoint = get_setting('services.sop.endpoint', DEFAULT_ENDPOINT).rstrip('/')
    model = get_setting('services.sop.model', DEFAULT_MODEL)
    timeout = float(get_setting('services.sop.timeout_seconds', 30))
    url = f"{endpoint}/{model}:generateContent"
    body = {'contents': [{'parts': [{'text': build_sop_prompt(point)}]}]}

    http = session or requests.Session()
    try:
        response = http.post(url, json=body, headers={'x-goog-api-key': api_key}, timeout=timeout)
        response.raise_for_status()
        text = _extract_text(response.json())
    except requests.RequestException as e:
        logger.error(f"SOP request for point '{point.id}' failed: {e}")
        return FAILURE_MESSAGE
    except ValueError as e:
        logger.error(f"SOP response for point '{point.id}' could not be parsed: {e}")
        return FAILURE_MESSAGE
    finally:
        if session is None:
            http.close()

    if not text:
        logger.warning(f"SOP service returned no text for point '{point.id}'.")
        return EMPTY_RESPONSE_MESSAGE
    logger.info(f"Generated SOP for point '{point.id}' ({len(text)} chars).")
    return text
