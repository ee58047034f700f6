from dataclasses import dataclass, field
from typing import Any

# ==================================================
# Compiled Output
# ==================================================

@dataclass
class CompiledQuery:
    """
    A statement ready for a driver: SQL text plus a flat, positional parameter list.
    params[i] binds to the i-th placeholder of sql.
    """
    sql: str
    params: list[Any] = field(default_factory=list)
