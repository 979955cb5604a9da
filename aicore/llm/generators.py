"""Generator variants and the remote-then-heuristic fallback pipeline.

Architectural role:
    Turns a `ContextBundle` into reply text. Two variants implement the
    same `Generator` protocol:
    - `HeuristicGenerator`: pure function of the bundle, always succeeds.
    - `RemoteGenerator`: builds a prompt and calls the remote server via
      `OllamaClient`; raises `GeneratorError` on any failure.

Fallback model:
    `GenerationPipeline.generate` walks explicit phases:

        REMOTE_ATTEMPT --success--> done (remote text)
        REMOTE_ATTEMPT --error/timeout--> FALLBACK --> done (heuristic text)
        HEURISTIC (remote not configured) --> done (heuristic text)

    Fallbacks are logged at WARNING and never raised to the caller.

Timeout behavior:
    The blocking remote call runs on a pipeline-owned thread pool via
    `loop.run_in_executor` and is bounded by `asyncio.wait_for`. On expiry the
    call is abandoned: the worker finishes in the background and nothing
    waits for it, including `asyncio.run` shutting down its loop. No shared
    state is locked while it runs.
"""

import asyncio
import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Protocol

from aicore.core.errors import GeneratorError
from aicore.nlp.tokenizer import tokenize
from aicore.prompting.prompt_builder import build_context_prompt


logger = logging.getLogger(__name__)

MAX_LISTED_EXPERIENCES = 3
MAX_LISTED_PATTERNS = 3
REMOTE_WORKERS = 4


class Generator(Protocol):
    """Minimal interface shared by every generator variant."""

    name: str

    def generate(self, bundle) -> str:
        """Return reply text for the bundle."""
        ...


# =========================================================
# HEURISTIC GENERATOR
# =========================================================

def _has_phrase(tokens, phrase: str) -> bool:
    parts = phrase.split()
    width = len(parts)
    return any(tokens[i:i + width] == parts for i in range(len(tokens) - width + 1))


def default_response(message: str) -> str:
    """Canned reply used when no experience matches the message."""
    tokens = tokenize(message)
    words = set(tokens)

    if words & {"halo", "hello", "hi", "hai"}:
        return ("Halo! Ada yang bisa saya bantu? Saya memiliki akses ke memori "
                "dan pengalaman yang tersimpan.")
    if _has_phrase(tokens, "terima kasih") or words & {"thanks", "makasih"}:
        return "Sama-sama! Senang bisa membantu. Ada yang lain yang ingin ditanyakan?"
    if words & {"bagaimana", "how"}:
        return ("Saya menggunakan pattern recognition dan memory analysis untuk "
                "memberikan jawaban. Coba berikan lebih banyak konteks atau kata kunci.")
    if words & {"apa", "what"}:
        return ("Saya adalah AI Core yang dapat membantu Anda mengakses dan menganalisis "
                "informasi dari memori. Silakan tanyakan sesuatu yang lebih spesifik.")
    return (f"Saya memahami pertanyaan Anda tentang '{message}'. Namun, saat ini saya "
            "tidak menemukan informasi relevan dalam memori. Silakan tambahkan lebih "
            "banyak pengalaman atau berikan konteks yang lebih spesifik.")


def context_response(bundle) -> str:
    """Reply summarising the retrieved experiences and their top keywords."""
    lines = [f"Berdasarkan {len(bundle.experiences)} pengalaman relevan yang saya temukan:", ""]
    for number, exp in enumerate(bundle.experiences[:MAX_LISTED_EXPERIENCES], start=1):
        lines.append(f"{number}. {exp.content} (dari {exp.source})")

    keywords = bundle.top_keywords(MAX_LISTED_PATTERNS)
    if keywords:
        lines.append("")
        lines.append(f"🔍 Pola yang terdeteksi: {', '.join(keywords)}")

    lines.append("")
    lines.append("Apakah ini menjawab pertanyaan Anda?")
    return "\n".join(lines)


class HeuristicGenerator:
    name = "heuristic"

    def generate(self, bundle) -> str:
        if bundle.is_empty:
            return default_response(bundle.message)
        return context_response(bundle)


# =========================================================
# REMOTE GENERATOR
# =========================================================

class RemoteGenerator:
    name = "remote"

    def __init__(self, client):
        self.client = client

    @property
    def available(self) -> bool:
        return bool(self.client.enabled)

    @property
    def timeout_seconds(self) -> float:
        return float(self.client.config.timeout_seconds)

    def generate(self, bundle) -> str:
        return self.client.generate(build_context_prompt(bundle))


# =========================================================
# FALLBACK PIPELINE
# =========================================================

class GenerationPhase(enum.Enum):
    REMOTE_ATTEMPT = "remote_attempt"
    FALLBACK = "fallback"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class GenerationResult:
    text: str
    generator: str
    fell_back: bool = False


class GenerationPipeline:
    """Selects the generator for one turn and applies the fallback transition."""

    def __init__(self, heuristic: Optional[HeuristicGenerator] = None, remote: Optional[RemoteGenerator] = None,
                 timeout_seconds: Optional[float] = None):
        self.heuristic = heuristic or HeuristicGenerator()
        self.remote = remote
        if timeout_seconds is None and remote is not None:
            timeout_seconds = remote.timeout_seconds
        self.timeout_seconds = timeout_seconds
        self._executor: Optional[ThreadPoolExecutor] = None

    def initial_phase(self) -> GenerationPhase:
        if self.remote is not None and self.remote.available:
            return GenerationPhase.REMOTE_ATTEMPT
        return GenerationPhase.HEURISTIC

    def _remote_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=REMOTE_WORKERS,
                                                thread_name_prefix="remote-generator")
        return self._executor

    async def _attempt_remote(self, bundle) -> str:
        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(self._remote_executor(), self.remote.generate, bundle)
        if self.timeout_seconds:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        return await call

    def close(self) -> None:
        """Release the remote worker pool without waiting for abandoned calls."""
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None

    async def generate(self, bundle) -> GenerationResult:
        phase = self.initial_phase()

        while True:
            if phase is GenerationPhase.REMOTE_ATTEMPT:
                try:
                    text = await self._attempt_remote(bundle)
                    return GenerationResult(text=text, generator=self.remote.name)
                except asyncio.TimeoutError:
                    logger.warning("Remote generation timed out after %.1fs. Using fallback.",
                                   self.timeout_seconds)
                except GeneratorError as err:
                    logger.warning("Remote generation failed: %s. Using fallback.", err)
                except Exception:
                    logger.exception("Remote generation crashed. Using fallback.")
                phase = GenerationPhase.FALLBACK
                continue

            text = self.heuristic.generate(bundle)
            return GenerationResult(
                text=text,
                generator=self.heuristic.name,
                fell_back=phase is GenerationPhase.FALLBACK,
            )
