"""Conversation -> candidate flow graph.

The backend's reply is untrusted text. Anything that does not parse, build or
validate comes back as ``is_valid=False`` with the raw text intact; only
upstream failures (status errors, rate limits, timeouts) raise.
"""
import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from flowsmith.config import settings
from flowsmith.core.errors import UpstreamTimeoutError
from flowsmith.core.logging import log_fields, logger
from flowsmith.graph.builder import PlanBuilder
from flowsmith.graph.handles import HandleEncodingError
from flowsmith.graph.layout import apply_defaults
from flowsmith.integrations.llm_provider import LLMProvider
from flowsmith.schemas.flow import FlowGraph
from flowsmith.schemas.workflow import WorkflowExplanation
from flowsmith.services.generation_guard import InMemoryGenerationGuard, generation_guard
from flowsmith.services.prompts import build_system_prompt
from flowsmith.services.validation_service import ValidationService


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_explanation(value: Any) -> Optional[WorkflowExplanation]:
    if not isinstance(value, dict):
        return None
    try:
        return WorkflowExplanation.model_validate(value)
    except ValidationError:
        logger.warning("Dropping malformed workflow explanation")
        return None


@dataclass
class GenerationContext:
    """Per-conversation state threaded through generate calls."""

    session_id: str
    history: List[Dict[str, str]] = field(default_factory=list)
    owner_id: Optional[str] = None
    graph: Optional[FlowGraph] = None
    explanation: Optional[WorkflowExplanation] = None


@dataclass
class GenerationResult:
    raw_text: str
    graph: Optional[FlowGraph] = None
    explanation: Optional[WorkflowExplanation] = None
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.graph is not None


class GenerationService:
    def __init__(
        self,
        guard: Optional[InMemoryGenerationGuard] = None,
        builder: Optional[PlanBuilder] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.guard = guard or generation_guard
        self.builder = builder or PlanBuilder()
        self.provider = provider or settings.GENERATION_PROVIDER
        self.model = model or settings.GENERATION_MODEL

    async def generate(self, context: GenerationContext) -> GenerationResult:
        async with self.guard.hold(context.session_id):
            logger.info(
                "Generating workflow plan",
                extra=log_fields(session_id=context.session_id, turns=len(context.history)),
            )
            try:
                raw_text = await asyncio.wait_for(
                    LLMProvider.chat_completion(
                        provider=self.provider,
                        model=self.model,
                        messages=list(context.history),
                        system_prompt=build_system_prompt(),
                        max_tokens=settings.GENERATION_MAX_TOKENS,
                    ),
                    timeout=settings.GENERATION_TIMEOUT,
                )
            except asyncio.TimeoutError as e:
                logger.error("Generation timed out", extra=log_fields(session_id=context.session_id))
                raise UpstreamTimeoutError(f"Generation did not finish within {settings.GENERATION_TIMEOUT}s") from e

        result = self.interpret(raw_text)
        context.history.append({"role": "assistant", "content": raw_text})
        if result.is_valid:
            context.graph = result.graph
            context.explanation = result.explanation
        return result

    def interpret(self, raw_text: str) -> GenerationResult:
        try:
            parsed = json.loads(strip_code_fence(raw_text))
        except ValueError:
            logger.info("Backend reply is not JSON; returning raw text")
            return GenerationResult(raw_text=raw_text, errors=["Response is not a JSON workflow"])

        if not isinstance(parsed, dict):
            return GenerationResult(raw_text=raw_text, errors=["Response is not a JSON object"])

        explanation = parse_explanation(parsed.get("explanation"))
        try:
            if "components" in parsed:
                graph = self.builder.build(parsed)
            elif "nodes" in parsed or "data" in parsed:
                graph = apply_defaults(FlowGraph.from_candidate(parsed), self.builder.rng)
                if not graph.id:
                    graph.id = str(uuid.uuid4())
            else:
                return GenerationResult(raw_text=raw_text, explanation=explanation, errors=["Response has no workflow"])
        except (ValidationError, HandleEncodingError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to build workflow: {e}", extra=log_fields(error_type=type(e).__name__))
            return GenerationResult(raw_text=raw_text, explanation=explanation, errors=[str(e)])

        validation = ValidationService.validate_graph(graph)
        if not validation.is_valid:
            logger.warning(
                "Generated workflow failed validation",
                extra=log_fields(errors=validation.messages()),
            )
            return GenerationResult(raw_text=raw_text, explanation=explanation, errors=validation.messages())

        logger.info(
            f"Built workflow with {len(graph.nodes)} nodes and {len(graph.edges)} edges",
            extra=log_fields(graph_id=graph.id),
        )
        return GenerationResult(raw_text=raw_text, graph=validation.graph, explanation=explanation)
