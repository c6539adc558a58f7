import anthropic
import openai
from typing import Optional, List, Dict
from flowsmith.config import settings
from flowsmith.core.errors import UpstreamConnectionError, UpstreamError, UpstreamTimeoutError, MalformedResponseError
from flowsmith.core.logging import logger, log_fields
from openai import AsyncOpenAI
from anthropic import AsyncAnthropic

class LLMProvider:
    _openai_client: Optional[AsyncOpenAI] = None
    _anthropic_client: Optional[AsyncAnthropic] = None

    @classmethod
    def _get_openai_client(cls) -> AsyncOpenAI:
        if cls._openai_client is None:
            cls._openai_client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=settings.GENERATION_TIMEOUT,
                max_retries=0,
            )
        return cls._openai_client

    @classmethod
    def _get_anthropic_client(cls) -> AsyncAnthropic:
        if cls._anthropic_client is None:
            cls._anthropic_client = AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY,
                timeout=settings.GENERATION_TIMEOUT,
                max_retries=0,
            )
        return cls._anthropic_client

    @staticmethod
    async def chat_completion(
        provider: str,
        model: str,
        messages: List[Dict[str, str]],
        system_prompt: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ) -> str:
        """
        Send a conversation to the provider and return the first text block.
        SDK failures are translated to the Upstream* errors.
        """
        logger.info(f"LLM Chat Completion: provider={provider} model={model}", extra=log_fields(turns=len(messages)))

        try:
            if provider == "openai":
                client = LLMProvider._get_openai_client()
                payload = []
                if system_prompt:
                    payload.append({"role": "system", "content": system_prompt})
                payload.extend(messages)

                response = await client.chat.completions.create(
                    model=model,
                    messages=payload,
                    temperature=temperature,
                    max_tokens=max_tokens
                )
                if not response.choices:
                    raise MalformedResponseError("OpenAI response has no choices")
                return response.choices[0].message.content or ""

            elif provider == "anthropic":
                client = LLMProvider._get_anthropic_client()
                response = await client.messages.create(
                    model=model,
                    system=system_prompt if system_prompt else "",
                    messages=messages,
                    max_tokens=max_tokens,
                    temperature=temperature
                )
                texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
                return texts[0] if texts else ""

            else:
                logger.error(f"Unsupported LLM provider: {provider}")
                raise UpstreamError(f"Unsupported LLM provider: {provider}")

        except (openai.APITimeoutError, anthropic.APITimeoutError) as e:
            logger.error(f"LLM API call timed out: {e}", extra=log_fields(failure="timeout"))
            raise UpstreamTimeoutError(f"{provider} request timed out") from e
        except (openai.APIConnectionError, anthropic.APIConnectionError) as e:
            logger.error(f"LLM API unreachable: {e}", extra=log_fields(failure="connection"))
            raise UpstreamConnectionError(f"Could not reach {provider}: {e}") from e
        except (openai.APIStatusError, anthropic.APIStatusError) as e:
            logger.error(f"LLM API call failed: {e.status_code}", extra=log_fields(failure="status", status=e.status_code))
            message = "Rate limit exceeded. Please try again in a moment." if e.status_code == 429 else f"{provider} API error: {e.status_code}"
            raise UpstreamError(message, upstream_status=e.status_code, body=e.body) from e
