"""
LLM factory and response helpers shared by the default collaborators.

Maps configured model names to LangChain chat models. API keys are read from
the environment when a model is built.
"""

import json
import os
from typing import Any, Callable, Dict, List, Optional, Type

from langchain_anthropic import ChatAnthropic
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, ValidationError

from errors import ParseError
from models.payload import strip_code_fence


_MODEL_MAP: Dict[str, Callable[[float, int], Any]] = {
    "claude-3-5-sonnet": lambda temperature, max_tokens: ChatAnthropic(
        model="claude-3-5-sonnet-20241022",
        api_key=os.environ.get("ANTHROPIC_API_KEY"),
        temperature=temperature,
        max_tokens=max_tokens,
    ),
    "gpt-4o": lambda temperature, max_tokens: ChatOpenAI(
        model="gpt-4o",
        api_key=os.environ.get("OPENAI_API_KEY"),
        temperature=temperature,
        max_tokens=max_tokens,
    ),
    "gpt-4o-mini": lambda temperature, max_tokens: ChatOpenAI(
        model="gpt-4o-mini",
        api_key=os.environ.get("OPENAI_API_KEY"),
        temperature=temperature,
        max_tokens=max_tokens,
    ),
}


def get_llm(model_name: str, temperature: float = 0.7, max_tokens: int = 2048) -> Any:
    """Instantiate a LangChain chat model by configured model name."""
    factory = _MODEL_MAP.get(model_name)
    if factory is None:
        raise ValueError(
            f"Unknown model '{model_name}'. "
            f"Supported models: {list(_MODEL_MAP.keys())}"
        )
    return factory(temperature, max_tokens)


def feedback_block(feedback: Optional[List[str]]) -> str:
    """Numbered list of every issue the quality judge raised, or ""."""
    if not feedback:
        return ""
    points = "\n".join(f"{i}. {issue}" for i, issue in enumerate(feedback, 1))
    return (
        f"\n\nThe Quality Judge rejected your previous output. "
        f"Address ALL of these {len(feedback)} point(s):\n{points}"
    )


def parse_model_json(content: Any, schema: Type[BaseModel]) -> Dict[str, Any]:
    """
    Decode a model response as JSON and validate it against ``schema``.

    Raises:
        ParseError: If the response is not JSON or does not match the schema.
    """
    if not isinstance(content, str):
        content = str(content)
    text = strip_code_fence(content)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid LLM response: {exc.msg}", {"content": text[:200]}) from exc
    try:
        return schema.model_validate(data).model_dump()
    except ValidationError as exc:
        raise ParseError(
            f"LLM response does not match {schema.__name__}: {exc.errors()[0]['msg']}",
            {"content": text[:200]},
        ) from exc
