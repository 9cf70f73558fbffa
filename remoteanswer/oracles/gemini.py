"""
Gemini Oracle.

Matches search queries to catalog products and writes short sales copy
using Gemini. All failures fall back to the NullOracle answers.
"""

import json
import logging
from typing import Dict, List, Optional
import google.generativeai as genai

from remoteanswer.models.product import Product
from remoteanswer.oracles.base import NullOracle, catalog_listing

logger = logging.getLogger(__name__)


RECOMMENDATION_PROMPT = """You are a shopping assistant for RemoteAnswer, a marketplace of expert study guides and solutions.

Your task:
1. Read the student's search query
2. Read the list of available products (ID and name)
3. Return the IDs of the products that best answer the query

Rules:
- Only return IDs that appear in the product list
- Order IDs from most to least relevant
- Return an empty list if nothing is relevant

Output valid JSON only."""

SALES_COPY_PROMPT = """You write short promotional copy for digital study guides.

Rules:
- One sentence, at most 20 words
- Speak to students who need answers fast
- No prices, no emojis, no hashtags

Output valid JSON only."""


def _construct_recommendation_prompt(query: str, listing: str) -> str:
    return f"""Search Query: "{query}"
Products: {listing}

Return matching product IDs as JSON:
{{
  "recommendedIds": ["..."]
}}"""


def _construct_pitch_prompt(title: str) -> str:
    return f"""Product Title: "{title}"

Write the sales pitch as JSON:
{{
  "pitch": "..."
}}"""


class GeminiOracle(NullOracle):
    """
    Recommendation and sales-copy oracle backed by Gemini.

    Uses JSON response mode with a system instruction per task. Pitches are
    cached per title for the life of the oracle.
    """

    def __init__(
        self,
        api_key: str,
        recommendation_model: str = "gemini-1.5-flash",
        sales_copy_model: str = "gemini-1.5-flash",
        temperature: float = 0.0,
        max_retries: int = 1
    ):
        """
        Initialize Gemini oracle.

        Args:
            api_key: Gemini API key
            recommendation_model: Model used to match queries to products
            sales_copy_model: Model used for product pitches
            temperature: LLM temperature
            max_retries: Attempts per call before failing open
        """
        self.temperature = temperature
        self.max_retries = max(1, max_retries)
        self._pitch_cache: Dict[str, str] = {}

        # Configure Gemini
        genai.configure(api_key=api_key)
        generation_config = {
            "temperature": temperature,
            "response_mime_type": "application/json"
        }
        self.recommendation_model = genai.GenerativeModel(
            model_name=recommendation_model,
            generation_config=generation_config,
            system_instruction=RECOMMENDATION_PROMPT
        )
        self.sales_copy_model = genai.GenerativeModel(
            model_name=sales_copy_model,
            generation_config=generation_config,
            system_instruction=SALES_COPY_PROMPT
        )

        logger.info(
            f"Initialized GeminiOracle with recommendation={recommendation_model}, "
            f"sales_copy={sales_copy_model}, temp={temperature}"
        )

    def recommend(self, query: str, catalog: List[Product]) -> List[str]:
        """
        Product ids matching a search query.

        Args:
            query: Free-text search query
            catalog: Full catalog offered to the model

        Returns:
            Recommended product ids, or [] on any failure
        """
        if not query or not query.strip():
            return []

        prompt = _construct_recommendation_prompt(query.strip(), catalog_listing(catalog))

        for attempt in range(self.max_retries):
            try:
                response = self.recommendation_model.generate_content(prompt)
                ids = self._parse_recommendations(response.text)
                logger.info(f"Oracle recommended {len(ids)} products for '{query}'")
                return ids

            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse recommendation JSON (attempt {attempt + 1}): {e}")
            except Exception as e:
                logger.error(f"Recommendation API error (attempt {attempt + 1}): {e}")

        logger.warning(f"Recommendation failed for '{query}', returning no results")
        return []

    def _parse_recommendations(self, response_text: str) -> List[str]:
        """
        Parse the recommendation response.

        Raises:
            json.JSONDecodeError: If response is not valid JSON
        """
        data = json.loads(response_text)

        if not isinstance(data, dict) or not isinstance(data.get("recommendedIds"), list):
            logger.warning("Oracle response missing 'recommendedIds' list")
            return []

        return [str(item) for item in data["recommendedIds"] if isinstance(item, (str, int))]

    def pitch(self, title: str) -> Optional[str]:
        """
        Short promotional text for a product.

        Returns:
            Pitch text, or None so the caller shows the static description
        """
        if title in self._pitch_cache:
            return self._pitch_cache[title]

        prompt = _construct_pitch_prompt(title)

        for attempt in range(self.max_retries):
            try:
                response = self.sales_copy_model.generate_content(prompt)
                data = json.loads(response.text)
                text = data.get("pitch") if isinstance(data, dict) else None
                if not isinstance(text, str) or not text.strip():
                    logger.warning(f"Oracle returned no pitch for '{title}'")
                    return None

                self._pitch_cache[title] = text.strip()
                return self._pitch_cache[title]

            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse pitch JSON (attempt {attempt + 1}): {e}")
            except Exception as e:
                logger.error(f"Sales copy API error (attempt {attempt + 1}): {e}")

        return None
