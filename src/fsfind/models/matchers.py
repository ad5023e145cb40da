"""
Matcher data models for fsfind.

A matcher is one predicate over a DirEntry. The set of matchers is closed:
name globs, regular expressions, size comparisons and entry types. Every
variant is an immutable pydantic model tagged by its ``matcher`` field, and
all of them are evaluated through the single ``evaluate`` dispatch function.

Construction is where malformed input is rejected. Evaluation never raises:
a predicate that does not apply to an entry (a size on a directory, say)
simply does not match.
"""

import fnmatch
import re
from enum import Enum
from typing import Annotated, Dict, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .entry import DirEntry, EntryKind


class MatcherError(Exception):
    """Raised when a predicate specification cannot be turned into a matcher."""
    pass


class InvalidPatternError(MatcherError):
    """Raised for a malformed shell glob."""
    pass


class InvalidRegexError(MatcherError):
    """Raised for a regular expression that does not compile."""
    pass


class InvalidSizeError(MatcherError):
    """Raised for a size token outside the ``[+|-]<integer>[B|K|M|G]`` grammar."""
    pass


class InvalidTypeError(MatcherError):
    """Raised for an entry type token other than f, d or s."""
    pass


class InvalidDepthError(MatcherError):
    """Raised for a depth bound that is not a non-negative integer."""
    pass


class SizeComparison(Enum):
    """How a SizeRange compares an entry size with its threshold."""
    EXACT = "exact"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


SIZE_UNITS: Dict[str, int] = {
    '': 1,
    'B': 1,
    'K': 1024,
    'M': 1024 * 1024,
    'G': 1024 * 1024 * 1024,
}

_SIZE_TOKEN = re.compile(r'([+-]?)([0-9]+)([A-Za-z]?)')

_SIZE_SIGNS: Dict[str, SizeComparison] = {
    '+': SizeComparison.GREATER_THAN,
    '-': SizeComparison.LESS_THAN,
    '': SizeComparison.EXACT,
}

_TYPE_TOKENS: Dict[str, EntryKind] = {
    'f': EntryKind.FILE,
    'd': EntryKind.DIRECTORY,
    's': EntryKind.SYMLINK,
}


def _check_glob_syntax(pattern: str) -> None:
    """
    Reject globs that fnmatch would silently read as literals.

    Args:
        pattern: Shell-style glob

    Raises:
        InvalidPatternError: If the pattern is empty or a character class is never closed
    """
    if not pattern:
        raise InvalidPatternError("Glob pattern cannot be empty")

    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] == '[':
            j = i + 1
            if j < n and pattern[j] in '!^':
                j += 1
            # A leading ']' is a literal member of the class
            if j < n and pattern[j] == ']':
                j += 1
            while j < n and pattern[j] != ']':
                j += 1
            if j >= n:
                raise InvalidPatternError(f"Unterminated character class in glob '{pattern}'")
            i = j
        i += 1


def _compile_glob(pattern: str, case_sensitive: bool) -> re.Pattern:
    """Translate a validated glob into an anchored regex, case folded when requested."""
    _check_glob_syntax(pattern)
    if not case_sensitive:
        pattern = pattern.casefold()
    try:
        return re.compile(fnmatch.translate(pattern))
    except re.error as e:
        raise InvalidPatternError(f"Invalid glob pattern '{pattern}': {e}") from e


class NameGlob(BaseModel):
    """
    Shell-glob predicate on the entry's base name.

    Attributes:
        pattern: Glob using ``*``, ``?`` and ``[...]`` character classes
        case_sensitive: When False both sides are case folded before comparison

    Wildcards count characters of the folded name, so with case folding a
    ``?`` stands for one folded character: ``ß`` folds to ``ss`` and needs
    ``??``.
    """

    model_config = ConfigDict(frozen=True)

    matcher: Literal['name_glob'] = 'name_glob'
    pattern: str = Field(..., description="Shell-style glob")
    case_sensitive: bool = Field(True, description="Compare names case-sensitively")

    _regex: Optional[re.Pattern] = PrivateAttr(default=None)

    def model_post_init(self, __context) -> None:
        """Compile the glob once; raises InvalidPatternError when malformed."""
        self._regex = _compile_glob(self.pattern, self.case_sensitive)

    def matches(self, entry: DirEntry) -> bool:
        return evaluate(self, entry)


class RegexMatch(BaseModel):
    """
    Regular-expression predicate searched anywhere in the entry's base name.

    The search is unanchored and case-sensitive; use ``^``/``$`` or an inline
    ``(?i)`` flag to change either.
    """

    model_config = ConfigDict(frozen=True)

    matcher: Literal['regex'] = 'regex'
    pattern: str = Field(..., description="Regular expression")

    _regex: Optional[re.Pattern] = PrivateAttr(default=None)

    def model_post_init(self, __context) -> None:
        """Compile the expression once; raises InvalidRegexError when it does not compile."""
        try:
            self._regex = re.compile(self.pattern)
        except re.error as e:
            raise InvalidRegexError(f"Invalid regular expression '{self.pattern}': {e}") from e

    def matches(self, entry: DirEntry) -> bool:
        return evaluate(self, entry)


class SizeRange(BaseModel):
    """
    Size predicate on regular files.

    Attributes:
        comparison: Exact, strictly greater than, or strictly less than
        threshold: Threshold in bytes
    """

    model_config = ConfigDict(frozen=True)

    matcher: Literal['size'] = 'size'
    comparison: SizeComparison = Field(SizeComparison.EXACT, description="Comparison against threshold")
    threshold: int = Field(..., ge=0, description="Threshold in bytes")

    @classmethod
    def parse(cls, token: str) -> 'SizeRange':
        """
        Parse a size token such as ``+10M``, ``-10K``, ``10`` or ``5G``.

        Units are binary (K = 1024). A leading ``+`` means greater than, a
        leading ``-`` less than, and no sign an exact size.

        Args:
            token: Size specification

        Returns:
            SizeRange for the token

        Raises:
            InvalidSizeError: If the number is missing or the unit is unknown
        """
        match = _SIZE_TOKEN.fullmatch(token) if token else None
        if not match:
            raise InvalidSizeError(f"Invalid size specification: '{token}'")

        sign, number, unit = match.groups()
        if unit not in SIZE_UNITS:
            raise InvalidSizeError(f"Unknown size unit '{unit}' in '{token}'")

        return cls(comparison=_SIZE_SIGNS[sign], threshold=int(number) * SIZE_UNITS[unit])

    def matches(self, entry: DirEntry) -> bool:
        return evaluate(self, entry)


class EntryType(BaseModel):
    """Predicate on the kind of filesystem node (file, directory or symlink)."""

    model_config = ConfigDict(frozen=True)

    matcher: Literal['entry_type'] = 'entry_type'
    kind: EntryKind = Field(..., description="Entry kind to accept")

    @field_validator('kind')
    @classmethod
    def validate_kind(cls, v: EntryKind) -> EntryKind:
        """Only files, directories and symlinks can be asked for."""
        if v is EntryKind.OTHER:
            raise ValueError("Entry type must be file, directory or symlink")
        return v

    @classmethod
    def parse(cls, token: str) -> 'EntryType':
        """
        Parse a single-character type token: ``f``, ``d`` or ``s``.

        Raises:
            InvalidTypeError: For any other token
        """
        kind = _TYPE_TOKENS.get(token)
        if kind is None:
            raise InvalidTypeError(f"Unknown entry type '{token}' (expected one of f, d, s)")
        return cls(kind=kind)

    def matches(self, entry: DirEntry) -> bool:
        return evaluate(self, entry)


Matcher = Annotated[
    Union[NameGlob, RegexMatch, SizeRange, EntryType],
    Field(discriminator='matcher'),
]


def _match_name_glob(matcher: NameGlob, entry: DirEntry) -> bool:
    name = entry.name if matcher.case_sensitive else entry.name.casefold()
    return matcher._regex.match(name) is not None


def _match_regex(matcher: RegexMatch, entry: DirEntry) -> bool:
    return matcher._regex.search(entry.name) is not None


def _match_size(matcher: SizeRange, entry: DirEntry) -> bool:
    if entry.kind is not EntryKind.FILE or entry.size is None:
        return False
    if matcher.comparison is SizeComparison.GREATER_THAN:
        return entry.size > matcher.threshold
    if matcher.comparison is SizeComparison.LESS_THAN:
        return entry.size < matcher.threshold
    return entry.size == matcher.threshold


def _match_entry_type(matcher: EntryType, entry: DirEntry) -> bool:
    return entry.kind is matcher.kind


# Lower cost is evaluated first in a conjunction
MATCHER_COSTS = {
    EntryType: 0,
    SizeRange: 1,
    NameGlob: 2,
    RegexMatch: 3,
}

_EVALUATORS = {
    NameGlob: _match_name_glob,
    RegexMatch: _match_regex,
    SizeRange: _match_size,
    EntryType: _match_entry_type,
}


def evaluate(matcher: Matcher, entry: DirEntry) -> bool:
    """
    Decide whether an entry satisfies a single matcher.

    Args:
        matcher: Any matcher variant
        entry: Entry to test

    Returns:
        True if the entry satisfies the predicate
    """
    try:
        evaluator = _EVALUATORS[type(matcher)]
    except KeyError:
        raise TypeError(f"Unsupported matcher type: {type(matcher).__name__}") from None
    return evaluator(matcher, entry)


def matcher_cost(matcher: Matcher) -> int:
    """Relative evaluation cost used to order a conjunction."""
    return MATCHER_COSTS.get(type(matcher), len(MATCHER_COSTS))


def build_matcher(flag: str, value: str) -> Matcher:
    """
    Build a matcher from a raw command-line predicate.

    Args:
        flag: Predicate flag name (``name``, ``iname``, ``regex``, ``size`` or
            ``type``), with or without leading dashes
        value: Raw value given for the flag

    Returns:
        The matcher for the predicate

    Raises:
        MatcherError: If the flag is unknown or the value is malformed
    """
    flag = flag.lstrip('-')

    if flag == 'name':
        return NameGlob(pattern=value)
    if flag == 'iname':
        return NameGlob(pattern=value, case_sensitive=False)
    if flag == 'regex':
        return RegexMatch(pattern=value)
    if flag == 'size':
        return SizeRange.parse(value)
    if flag == 'type':
        return EntryType.parse(value)

    raise MatcherError(f"Unknown predicate flag: '{flag}'")
