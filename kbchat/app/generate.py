#!/usr/bin/env python3
"""
Generation module for the knowledge-base chatbot.

This module handles free-form text generation using the Gemini LLM API.
"""

import requests
from typing import Optional

from .config import Config
from .errors import GenerationError
from ..utils.logger import get_logger

logger = get_logger("generate")


class GenerationClient:
    """Client for generating text using the Gemini LLM API."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 api_base: Optional[str] = None, timeout: Optional[float] = None):
        """Initialize the generation client with explicit credentials."""
        self.api_key = api_key or Config.GEMINI_API_KEY
        self.llm_model = model or Config.GEMINI_MODEL
        self.timeout = timeout or Config.HTTP_TIMEOUT
        base = api_base or Config.GEMINI_API_BASE
        self.api_base_url = f"{base}/models/{self.llm_model}:generateContent"

        if not self.api_key:
            raise ValueError("Gemini API key is required")

    def generate(self, prompt: str, temperature: float = 0.2, max_tokens: int = 500) -> str:
        """
        Generate text using the Gemini LLM.

        Args:
            prompt: Fully formatted prompt
            temperature: Sampling temperature
            max_tokens: Upper bound on output tokens

        Returns:
            Generated text, stripped

        Raises:
            GenerationError: on transport errors or an unexpected response shape
        """
        logger.debug(f"Generating with {self.llm_model}, prompt length: {len(prompt)}")

        payload = {
            "contents": [
                {
                    "parts": [
                        {
                            "text": prompt
                        }
                    ]
                }
            ],
            "generationConfig": {
                "temperature": temperature,
                "maxOutputTokens": max_tokens
            }
        }

        try:
            response = requests.post(
                self.api_base_url,
                params={"key": self.api_key},
                headers={"Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout
            )

            if response.status_code != 200:
                logger.warning(f"Gemini returned status {response.status_code}: {response.text[:200]}")
                response.raise_for_status()

            data = response.json()

            # Extract text from Gemini response
            if "candidates" in data and len(data["candidates"]) > 0:
                text = data["candidates"][0]["content"]["parts"][0]["text"].strip()
            else:
                raise KeyError("No candidates found in response")
            logger.debug(f"Generated text length: {len(text)}")
            return text

        except requests.exceptions.RequestException as e:
            raise GenerationError(f"Error generating text: {str(e)}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise GenerationError(f"Error parsing generation response: {str(e)}") from e
