# server/tools/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Type

from pydantic import BaseModel


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[[Any], Awaitable[Dict[str, Any]]]


class NoArgsIn(BaseModel):
    model_config = {"extra": "forbid"}
