from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Literal, Optional

logger = logging.getLogger(__name__)

Severity = Literal["warning", "error"]


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    symbol: Optional[str] = None   # qualified name of the declaration concerned


class Diagnostics:
    """
    Collects the user-facing messages of one generation pass and mirrors
    each to the module logger.
    """
    def __init__(self) -> None:
        self.messages: List[Diagnostic] = []

    def warn(self, message: str, symbol: Optional[str] = None) -> None:
        self.messages.append(Diagnostic("warning", message, symbol))
        logger.warning(message)

    def error(self, message: str, symbol: Optional[str] = None) -> None:
        self.messages.append(Diagnostic("error", message, symbol))
        logger.error(message)

    @property
    def warnings(self) -> List[str]:
        return [d.message for d in self.messages if d.severity == "warning"]

    @property
    def errors(self) -> List[str]:
        return [d.message for d in self.messages if d.severity == "error"]

    def to_json(self) -> List[Dict[str, Any]]:
        return [asdict(d) for d in self.messages]
