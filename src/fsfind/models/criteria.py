"""
Match criteria data model for fsfind.

MatchCriteria bundles everything one walk filters on: the matchers, which are
combined with AND, and an optional bound on how deep the walk may go.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from .entry import DirEntry
from .matchers import InvalidDepthError, Matcher, build_matcher, evaluate, matcher_cost


def parse_depth(value: Union[str, int]) -> int:
    """
    Parse a depth bound.

    Args:
        value: Non-negative integer, or its decimal string form

    Returns:
        The depth as an int

    Raises:
        InvalidDepthError: If the value is not a non-negative integer
    """
    if isinstance(value, bool):
        raise InvalidDepthError(f"Invalid depth: {value!r}")
    if isinstance(value, int):
        depth = value
    else:
        text = str(value).strip()
        if not text.isdigit() or not text.isascii():
            raise InvalidDepthError(f"Invalid depth: '{value}' (expected a non-negative integer)")
        depth = int(text)

    if depth < 0:
        raise InvalidDepthError(f"Depth must be non-negative, got {depth}")
    return depth


class MatchCriteria(BaseModel):
    """
    The complete filter for one walk.

    Attributes:
        matchers: Predicates that must all hold for an entry to be reported
        max_depth: Deepest level visited (root is 0); None means unbounded
    """

    model_config = ConfigDict(frozen=True)

    matchers: Tuple[Matcher, ...] = Field(default_factory=tuple, description="Predicates combined with AND")
    max_depth: Optional[int] = Field(None, ge=0, description="Maximum traversal depth")

    _ordered: tuple = PrivateAttr(default=())

    def model_post_init(self, __context) -> None:
        """Order matchers cheapest first for short-circuit evaluation."""
        self._ordered = tuple(sorted(self.matchers, key=matcher_cost))

    @classmethod
    def from_tokens(cls, tokens: Iterable[Tuple[str, str]],
                    max_depth: Optional[Union[str, int]] = None) -> 'MatchCriteria':
        """
        Build criteria from raw ``(flag, value)`` predicate tokens.

        ``depth`` tokens set the depth bound instead of adding a matcher; when
        several bounds are given the smallest one wins.

        Args:
            tokens: Predicate tokens in command-line order
            max_depth: Depth bound given outside the token list

        Returns:
            MatchCriteria for the tokens

        Raises:
            MatcherError: If any token is malformed
        """
        bound = parse_depth(max_depth) if max_depth is not None else None
        matchers: List[Matcher] = []

        for flag, value in tokens:
            if flag.lstrip('-') == 'depth':
                depth = parse_depth(value)
                bound = depth if bound is None else min(bound, depth)
            else:
                matchers.append(build_matcher(flag, value))

        return cls(matchers=tuple(matchers), max_depth=bound)

    def allows_depth(self, depth: int) -> bool:
        """Check whether entries at this depth may be visited."""
        return self.max_depth is None or depth <= self.max_depth

    def matches(self, entry: DirEntry) -> bool:
        """Check an entry against every matcher, stopping at the first failure."""
        return all(evaluate(matcher, entry) for matcher in self._ordered)

    def has_matchers(self) -> bool:
        return bool(self.matchers)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the criteria to a dictionary representation."""
        return self.model_dump(mode='json')

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchCriteria':
        """Create MatchCriteria from a dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        parts = [f"Matchers: {len(self.matchers)}"]
        if self.max_depth is not None:
            parts.append(f"Max depth: {self.max_depth}")
        return " | ".join(parts)
