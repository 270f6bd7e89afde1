"""
Natural-language sales assistant backed by Gemini.

The assistant never computes anything itself: it serialises the most recent
sales into a prompt, forwards the user's question and shows whatever text
comes back. Transport or service failures turn into a fixed apology so the
chat stays usable.
"""
import json
import logging
import os
import threading
import time
from typing import Dict, List, Optional

from google import genai
from google.genai import types

from utils.file_manager import get_config

LOG = logging.getLogger(__name__)

GREETING = "¡Hola! Soy tu asistente de Boom Art. Pregúntame sobre tus ventas, utilidades o clientes."
NO_ANSWER = "Lo siento, no pude generar una respuesta."
ERROR_REPLY = (
    "Hubo un error al conectar con el asistente inteligente. "
    "Por favor verifica tu conexión o intenta más tarde."
)

PROMPT_TEMPLATE = """
You are a helpful data analyst assistant for "Boom Art", a 3D printing business.
Here is the raw JSON data of the recent sales:
{context}

Rules:
1. Answer the user's question based strictly on this data.
2. If the answer requires calculation (sum, average, profit margin), perform it accurately.
3. Format currency in Soles (S/).
4. Be concise and professional.
5. If you can't find the answer in the data, say so.

User Question: {question}
"""

def build_prompt(question: str, sales: List[Dict], limit: int = 500) -> str:
    """Prompt with at most ``limit`` sales, taken from the front of ``sales``.

    Callers pass sales newest first, so truncation drops the oldest records.
    """
    context = json.dumps(sales[:limit], ensure_ascii=False)
    return PROMPT_TEMPLATE.format(context=context, question=question)

def make_client(timeout_seconds: float) -> genai.Client:
    api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    return genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
    )

def ask_sales_assistant(question: str, sales: List[Dict], client=None) -> str:
    cfg = get_config()["assistant"]
    try:
        if client is None:
            client = make_client(cfg["timeout_seconds"])
        prompt = build_prompt(question, sales, limit=int(cfg["max_records"]))
        response = client.models.generate_content(
            model=cfg["model"],
            contents=prompt,
            config=types.GenerateContentConfig(
                thinking_config=types.ThinkingConfig(thinking_budget=int(cfg["thinking_budget"])),
            ),
        )
        return response.text or NO_ANSWER
    except Exception:
        LOG.exception("Gemini API error")
        return ERROR_REPLY

class AssistantChat:
    """Conversation history for one user.

    A question asked while an earlier one is still waiting supersedes it: the
    earlier reply is discarded when it finally arrives instead of being
    appended out of order.
    """

    def __init__(self, client=None):
        self.client = client
        self._lock = threading.Lock()
        self._generation = 0
        self._pending: Optional[int] = None
        self.messages: List[Dict] = []
        self.reset()

    def reset(self):
        with self._lock:
            self._generation += 1
            self._pending = None
            self.messages = [_message("ai", GREETING)]

    @property
    def is_waiting(self) -> bool:
        return self._pending is not None

    def ask(self, question: str, sales: List[Dict]) -> Optional[str]:
        """Send ``question`` and return the reply, or None if it was superseded."""
        question = (question or "").strip()
        if not question:
            raise ValueError("question must not be empty")
        with self._lock:
            self._generation += 1
            ticket = self._generation
            self._pending = ticket
            self.messages.append(_message("user", question))

        reply = ask_sales_assistant(question, sales, client=self.client)

        with self._lock:
            if ticket != self._generation:
                LOG.info("Dropping superseded assistant reply for %r", question)
                return None
            self._pending = None
            self.messages.append(_message("ai", reply))
        return reply

    def cancel(self):
        """Abandon the question in flight, if any."""
        with self._lock:
            if self._pending is not None:
                self._generation += 1
                self._pending = None

def _message(role: str, text: str) -> Dict:
    return {"role": role, "text": text, "timestamp": int(time.time() * 1000)}
