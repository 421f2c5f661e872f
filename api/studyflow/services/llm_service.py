"""
LLM service: calls to the Gemini API.
"""
import requests
import json
import logging
from typing import Optional
from studyflow.core.config import settings
from studyflow.core.exceptions import ContentGenerationError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def calculate_gemini_cost(prompt_tokens: int, output_tokens: int, model_name: str = "gemini-2.5-flash") -> float:
    """
    Calculate cost for Gemini API call based on token usage.

    Pricing per million tokens:
    - flash models: $0.075 input, $0.30 output
    - pro models: $0.125 input, $0.50 output

    Args:
        prompt_tokens: Number of input tokens
        output_tokens: Number of output tokens
        model_name: Name of the model used

    Returns:
        Cost in USD
    """
    if "pro" in model_name.lower():
        input_price_per_million = 0.125
        output_price_per_million = 0.50
    else:
        # Flash pricing is the default
        input_price_per_million = 0.075
        output_price_per_million = 0.30

    input_cost = (prompt_tokens / 1_000_000) * input_price_per_million
    output_cost = (output_tokens / 1_000_000) * output_price_per_million

    return input_cost + output_cost


def extract_json_text(text: str) -> str:
    """Strip a markdown code fence (```json ... ```) around a JSON reply, if present."""
    text = text.strip()
    if text.startswith('```'):
        lines = text.split('\n')
        text = '\n'.join(lines[1:])
        if text.rstrip().endswith('```'):
            text = text.rstrip()[:-3]
    return text.strip()


def call_gemini_api(prompt: str, system_instruction: Optional[str] = None) -> tuple[dict, dict]:
    """
    Call Gemini API and parse its reply as JSON.

    Args:
        prompt: The prompt to send to the LLM
        system_instruction: Optional system instruction to provide context

    Returns:
        Tuple of (parsed JSON response from the LLM, token usage dict with keys:
                  'prompt_tokens', 'output_tokens', 'total_tokens', 'cost_usd', 'model_name')

    Raises:
        ContentGenerationError: If the API key is missing, the call fails or the reply is not JSON
    """
    api_key = settings.google_gemini_api_key
    if not api_key:
        raise ContentGenerationError("Google Gemini API key not configured")

    model_name = settings.gemini_model_name
    url = f"{GEMINI_BASE_URL}/{model_name}:generateContent"

    payload = {
        "contents": [{
            "parts": [{
                "text": prompt
            }]
        }],
        "generationConfig": {
            "temperature": 0.7,
            "topK": 40,
            "topP": 0.95,
            "maxOutputTokens": 4096,
            "responseMimeType": "application/json",
        }
    }

    if system_instruction:
        payload["systemInstruction"] = {
            "parts": [{
                "text": system_instruction
            }]
        }

    try:
        response = requests.post(
            url,
            params={"key": api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=settings.gemini_timeout_seconds
        )
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        error_msg = f"Gemini API request failed: {str(e)}"
        if getattr(e, 'response', None) is not None:
            error_msg += f" - Status: {e.response.status_code}"
        logger.error(error_msg)
        raise ContentGenerationError(error_msg) from e
    except ValueError as e:
        logger.error(f"Gemini API returned a non-JSON body: {e}")
        raise ContentGenerationError("Gemini API returned a non-JSON body") from e

    # Extract token usage from usageMetadata
    usage_metadata = data.get('usageMetadata', {})
    prompt_tokens = usage_metadata.get('promptTokenCount', 0)
    output_tokens = usage_metadata.get('candidatesTokenCount', 0)
    total_tokens = usage_metadata.get('totalTokenCount', prompt_tokens + output_tokens)

    token_usage = {
        'prompt_tokens': prompt_tokens,
        'output_tokens': output_tokens,
        'total_tokens': total_tokens,
        'cost_usd': calculate_gemini_cost(prompt_tokens, output_tokens, model_name),
        'model_name': model_name
    }

    candidates = data.get('candidates') or []
    if not candidates:
        raise ContentGenerationError("LLM response missing candidates")

    parts = candidates[0].get('content', {}).get('parts') or []
    if not parts:
        raise ContentGenerationError("LLM response missing content or parts")

    text = extract_json_text(parts[0].get('text', ''))
    if not text:
        raise ContentGenerationError("LLM returned empty response")

    try:
        llm_data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM JSON response: {e}")
        logger.error(f"Response text: {text[:500]}")
        raise ContentGenerationError(f"LLM returned invalid JSON: {str(e)}") from e

    return llm_data, token_usage
