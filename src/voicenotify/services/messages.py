"""
Message Service — what to say for a notification.

Static phrase tables per kind, with "multiple" variants carrying a {count}
placeholder for batched requests. Optionally asks an OpenAI-compatible chat
endpoint (Ollama, LM Studio, vLLM...) for a fresh sentence first.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod

from openai import AsyncOpenAI

import voicenotify.core.config as config_module
from voicenotify.core.config import AIConfig

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Notification"
AI_UNAVAILABLE_MESSAGE = "Notification: Please check your screen."

MIN_AI_LENGTH = 5
MAX_AI_LENGTH = 200

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates short notification messages. "
    "Output only the message text, nothing else. No quotes, no explanations."
)

AI_PROMPTS: dict[str, str] = {
    "idle": (
        "Generate a single brief, friendly notification sentence (max 15 words) "
        "saying a coding task is complete. Be encouraging and warm. "
        "Output only the message, no quotes."
    ),
    "permission": (
        "Generate a single brief, urgent but friendly notification sentence "
        "(max 15 words) asking the user to approve a permission request. "
        "Output only the message, no quotes."
    ),
    "question": (
        "Generate a single brief, polite notification sentence (max 15 words) "
        "saying the assistant has a question and needs user input. "
        "Output only the message, no quotes."
    ),
    "idleReminder": (
        "Generate a single brief, gentle reminder sentence (max 15 words) that a "
        "completed task is waiting for review. Be slightly more insistent. "
        "Output only the message, no quotes."
    ),
    "permissionReminder": (
        "Generate a single brief, urgent reminder sentence (max 15 words) that "
        "permission approval is still needed. Convey importance. "
        "Output only the message, no quotes."
    ),
    "questionReminder": (
        "Generate a single brief, polite but persistent reminder sentence "
        "(max 15 words) that a question is still waiting for an answer. "
        "Output only the message, no quotes."
    ),
}

# (kind, is_reminder, multiple) → phrases
STATIC_MESSAGES: dict[tuple[str, bool, bool], list[str]] = {
    ("idle", False, False): [
        "All done! Your task has been completed successfully.",
        "Hey there! I finished working on your request.",
        "Task complete! Ready for your review whenever you are.",
        "Good news! Everything is done and ready for you.",
        "Finished! Let me know if you need anything else.",
    ],
    ("idle", True, False): [
        "Hey, are you still there? Your task has been waiting for review.",
        "Just a gentle reminder - I finished your request a while ago!",
        "Hello? I completed your task. Please take a look when you can.",
        "Still waiting for you! The work is done and ready for review.",
        "Knock knock! Your completed task is patiently waiting for you.",
    ],
    ("permission", False, False): [
        "Attention please! I need your permission to continue.",
        "Hey! Quick approval needed to proceed with the task.",
        "Heads up! There is a permission request waiting for you.",
        "Excuse me! I need your authorization before I can continue.",
        "Permission required! Please review and approve when ready.",
    ],
    ("permission", False, True): [
        "Attention please! There are {count} permission requests waiting for your approval.",
        "Hey! {count} permissions need your approval to continue.",
        "Heads up! You have {count} pending permission requests.",
        "Excuse me! I need your authorization for {count} different actions.",
        "{count} permissions required! Please review and approve when ready.",
    ],
    ("permission", True, False): [
        "Hey! I still need your permission to continue. Please respond!",
        "Reminder: There is a pending permission request. I cannot proceed without you.",
        "Hello? I am waiting for your approval. This is getting urgent!",
        "Please check your screen! I really need your permission to move forward.",
        "Still waiting for authorization! The task is on hold until you respond.",
    ],
    ("permission", True, True): [
        "Hey! I still need your approval for {count} permissions. Please respond!",
        "Reminder: There are {count} pending permission requests. I cannot proceed without you.",
        "Hello? I am waiting for your approval on {count} items. This is getting urgent!",
        "Please check your screen! {count} permissions are waiting for your response.",
        "Still waiting for authorization on {count} requests! The task is on hold.",
    ],
    ("question", False, False): [
        "Hey! I have a question for you. Please check your screen.",
        "Attention! I need your input to continue.",
        "Quick question! Please take a look when you have a moment.",
        "I need some clarification. Could you please respond?",
        "Question time! Your input is needed to proceed.",
    ],
    ("question", False, True): [
        "Hey! I have {count} questions for you. Please check your screen.",
        "Attention! I need your input on {count} items to continue.",
        "{count} questions need your attention. Please take a look!",
        "I need some clarifications. There are {count} questions waiting for you.",
        "Question time! {count} questions need your response to proceed.",
    ],
    ("question", True, False): [
        "Hey! I am still waiting for your answer. Please check the questions!",
        "Reminder: There is a question waiting for your response.",
        "Hello? I need your input to continue. Please respond when you can.",
        "Still waiting for your answer! The task is on hold.",
        "Your input is needed! Please check the pending question.",
    ],
    ("question", True, True): [
        "Hey! I am still waiting for answers to {count} questions. Please respond!",
        "Reminder: There are {count} questions waiting for your response.",
        "Hello? I need your input on {count} items. Please respond when you can.",
        "Still waiting for your answers on {count} questions! The task is on hold.",
        "Your input is needed! {count} questions are pending your response.",
    ],
}


class MessageProvider(ABC):
    """Supplies the text spoken for a notification."""

    @abstractmethod
    async def get_message(
        self, kind: str, is_reminder: bool, item_count: int = 1
    ) -> str:
        ...


def static_message(kind: str, is_reminder: bool, item_count: int = 1) -> str:
    """Pick a phrase from the static tables, filling in {count}."""
    multiple = item_count > 1
    phrases = STATIC_MESSAGES.get((kind, is_reminder, multiple))
    if not phrases and multiple:
        phrases = STATIC_MESSAGES.get((kind, is_reminder, False))
    if not phrases:
        return GENERIC_MESSAGE
    return random.choice(phrases).replace("{count}", str(item_count))


def clean_ai_text(text: str | None) -> str | None:
    """Strip wrapping quotes; None if the result is empty or implausibly sized."""
    if not text:
        return None
    cleaned = text.strip()
    if cleaned[:1] in ("'", '"'):
        cleaned = cleaned[1:]
    if cleaned[-1:] in ("'", '"'):
        cleaned = cleaned[:-1]
    cleaned = cleaned.strip()
    if not MIN_AI_LENGTH <= len(cleaned) <= MAX_AI_LENGTH:
        logger.warning("AI message length invalid: %d chars", len(cleaned))
        return None
    return cleaned


class MessageService(MessageProvider):
    """Static phrases, optionally replaced by AI-generated ones."""

    def __init__(self, ai: AIConfig | None = None, client: AsyncOpenAI | None = None):
        self._ai = ai or config_module.config.ai
        self._client = client

    @property
    def ai_enabled(self) -> bool:
        return self._ai.enabled

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            # Local servers accept any key, the SDK insists on one
            self._client = AsyncOpenAI(
                base_url=self._ai.endpoint,
                api_key=self._ai.api_key or "not-needed",
                timeout=self._ai.timeout,
            )
        return self._client

    async def get_message(
        self, kind: str, is_reminder: bool, item_count: int = 1
    ) -> str:
        if self._ai.enabled:
            prompt_type = f"{kind}Reminder" if is_reminder else kind
            generated = await self.generate(prompt_type, item_count)
            if generated:
                logger.debug("AI message generated: %s", generated, extra={"kind": kind})
                return generated
            if not self._ai.fallback_to_static:
                return AI_UNAVAILABLE_MESSAGE
        return static_message(kind, is_reminder, item_count)

    async def generate(self, prompt_type: str, item_count: int = 1) -> str | None:
        """Ask the AI endpoint for one sentence. None on any failure."""
        prompt = AI_PROMPTS.get(prompt_type)
        if not prompt:
            logger.warning("No AI prompt for type: %s", prompt_type)
            return None
        if item_count > 1:
            prompt += f" Mention that there are {item_count} items."

        try:
            response = await self._get_client().chat.completions.create(
                model=self._ai.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                # Thinking models spend tokens before answering
                max_tokens=1000,
                temperature=0.7,
            )
        except Exception as e:
            logger.warning("AI message generation failed: %s", e)
            return None

        if not response.choices:
            logger.warning("Empty response from AI endpoint")
            return None
        return clean_ai_text(response.choices[0].message.content)

    async def check_ai_connection(self) -> dict:
        """List models on the AI endpoint to prove it is reachable."""
        if not self._ai.enabled:
            return {"success": False, "message": "AI messages not enabled"}
        try:
            page = await self._get_client().models.list()
        except Exception as e:
            return {"success": False, "message": str(e)}

        models = [model.id for model in page.data]
        shown = ", ".join(models[:3]) + ("..." if len(models) > 3 else "")
        return {
            "success": True,
            "message": f"Connected! Available models: {shown}",
            "models": models,
        }

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
