from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from openai import OpenAI

from catalog import format_inr
from config import settings
from schemas import ChatMessage, Product

logger = logging.getLogger(__name__)

OFFLINE_REPLY = "I'm sorry, I'm currently offline (API Key missing)."
CHAT_FAILURE_REPLY = "I'm having trouble connecting to the server right now. Please try again later."
DESCRIPTION_OFFLINE = "API key is missing. Cannot generate description."
DESCRIPTION_FAILURE = "Failed to generate description."
DESCRIPTION_EMPTY = "No description generated."

GREETING = "Hi! I'm Melody. How can I help you find your perfect instrument today? 🎵"


def inventory_context(products: Sequence[Product]) -> str:
    return "\n".join(f"- {p.name} ({format_inr(p.price)}): {p.description[:50]}..." for p in products)


def system_instruction(products: Sequence[Product]) -> str:
    return (
        "You are Melody, the AI sales assistant for MelodyMart.\n"
        "You are helpful, knowledgeable about music, and friendly.\n\n"
        f"Here is our current inventory:\n{inventory_context(products)}\n\n"
        "Rules:\n"
        "1. Only recommend products from our inventory.\n"
        "2. If asked about something we don't have, politely suggest a similar item from inventory "
        "or say we don't carry it.\n"
        "3. Keep answers concise (under 3 sentences) unless asked for details.\n"
        "4. Use emojis occasionally.\n"
        "5. Prices are in Indian Rupees (₹).\n"
    )


class ShopAssistant:
    """Wrapper around an OpenAI-compatible chat completion API.

    Never raises on provider errors: every call returns either the generated
    text or a fixed fallback reply.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> None:
        if client is None and settings.openai_api_key:
            client = OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        self.client = client
        self.model = model or settings.assistant_model
        self.temperature = temperature if temperature is not None else settings.assistant_temperature

    @property
    def online(self) -> bool:
        return self.client is not None

    def _complete(self, messages: List[dict]) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=messages,
        )
        return resp.choices[0].message.content or ""

    def chat(self, message: str, history: Sequence[ChatMessage], products: Sequence[Product]) -> str:
        if not self.online:
            return OFFLINE_REPLY

        messages = [{"role": "system", "content": system_instruction(products)}]
        for turn in history:
            messages.append({"role": "assistant" if turn.role == "model" else "user", "content": turn.text})
        messages.append({"role": "user", "content": message})

        try:
            return self._complete(messages)
        except Exception:
            logger.exception("Assistant chat completion failed")
            return CHAT_FAILURE_REPLY

    def describe_product(self, name: str, category: str) -> str:
        if not self.online:
            return DESCRIPTION_OFFLINE

        prompt = (
            "Write a compelling, professional e-commerce product description for a musical instrument.\n"
            f"Product Name: {name}\n"
            f"Category: {category}\n"
            "Keep it under 100 words. Focus on tone, build quality, and player experience."
        )
        try:
            return self._complete([{"role": "user", "content": prompt}]) or DESCRIPTION_EMPTY
        except Exception:
            logger.exception("Assistant description completion failed")
            return DESCRIPTION_FAILURE
