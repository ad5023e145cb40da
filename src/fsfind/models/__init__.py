"""
Data models for fsfind.

This module contains the entry, matcher and criteria structures shared by
the walker and the command line.
"""

from .entry import DirEntry, EntryKind
from .matchers import (
    EntryType,
    InvalidDepthError,
    InvalidPatternError,
    InvalidRegexError,
    InvalidSizeError,
    InvalidTypeError,
    Matcher,
    MatcherError,
    NameGlob,
    RegexMatch,
    SizeComparison,
    SizeRange,
    build_matcher,
    evaluate,
    matcher_cost,
)
from .criteria import MatchCriteria

__all__ = [
    'DirEntry',
    'EntryKind',
    'EntryType',
    'InvalidDepthError',
    'InvalidPatternError',
    'InvalidRegexError',
    'InvalidSizeError',
    'InvalidTypeError',
    'MatchCriteria',
    'Matcher',
    'MatcherError',
    'NameGlob',
    'RegexMatch',
    'SizeComparison',
    'SizeRange',
    'build_matcher',
    'evaluate',
    'matcher_cost',
]
