"""Session context for one application run.

Holds the signed-in user, the selected festival and the last ranked
matches. Created at startup and ``reset()`` on logout.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import MatchResult
from .utils.progress import ProgressEvents


@dataclass
class Session:
    user: Optional[Dict[str, Any]] = None
    current_festival: Optional[str] = None
    matches: List[MatchResult] = field(default_factory=list)
    library_size: int = 0
    lineup_size: int = 0
    progress: ProgressEvents = field(default_factory=ProgressEvents)

    @property
    def display_name(self) -> str:
        if not self.user:
            return "unknown user"
        return self.user.get('display_name') or self.user.get('id') or "unknown user"

    def record_matches(self, festival_id: str, matches: List[MatchResult], library_size: int, lineup_size: int) -> None:
        self.current_festival = festival_id
        self.matches = list(matches)
        self.library_size = library_size
        self.lineup_size = lineup_size

    def reset(self) -> None:
        """Forget everything user-specific; progress subscribers stay attached."""
        self.user = None
        self.current_festival = None
        self.matches = []
        self.library_size = 0
        self.lineup_size = 0


__all__ = ["Session"]
