from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from typeguard import typechecked

from .classify import has_binary_extension, looks_binary, matches_glob, normalize_extension
from .core import CandidateFile, Config, MatchedFile, SourceAdapter
from .types import TGlob, _is_glob

logger = logging.getLogger(__name__)


class SkipReason(str, Enum):
    OUTPUT_FILE = "output-file"
    HIDDEN = "hidden"
    IGNORED_EXTENSION = "ignored-extension"
    EXTENSION_NOT_MATCHED = "extension-not-matched"
    NON_TEXT = "non-text"
    INCLUDE_MISMATCH = "include-mismatch"
    EXCLUDE_MATCH = "exclude-match"


@dataclass(frozen=True)
class Skipped:
    candidate: CandidateFile
    reason: SkipReason
    detail: str = ""

    def describe(self) -> str:
        return f"{self.reason.value}: {self.detail}" if self.detail else self.reason.value


@dataclass(frozen=True)
class FilterOutcome:
    matched: tuple[MatchedFile, ...]
    skipped: tuple[Skipped, ...]


@typechecked
def resolve_extensions(custom_extensions: list[str], *, case_sensitive: bool) -> frozenset[str]:
    """Normalize user extensions ('py', '.PY') into a set of '.py' style entries."""
    return frozenset(
        normalize_extension(ext, case_sensitive=case_sensitive)
        for ext in custom_extensions
        if ext.strip().lstrip(".")
    )


@typechecked
def rewrite_exclude_glob(pattern: str) -> TGlob:
    """A bare filename ('config.json') becomes '**/config.json' so it matches at any depth."""
    if "/" not in pattern and not _is_glob(pattern):
        return f"**/{pattern}"
    return pattern


@typechecked
def resolve_exclude_globs(custom_excludes: list[str]) -> tuple[str, ...]:
    return tuple(rewrite_exclude_glob(p) for p in custom_excludes if p)


def targets_hidden(pattern: str) -> bool:
    """True for include globs that explicitly ask for dot-named paths ('.env', 'conf/.*')."""
    return pattern.startswith(".") or "/." in pattern


def keeps_hidden(config: Config) -> bool:
    """Whether discovery must keep dot-named entries for the filter chain to decide on."""
    return config.include_hidden or any(targets_hidden(p) for p in config.include_globs)


class FilterChain:
    """
    Applies the ordered predicates to each candidate, stopping at the first rejection:
    output file, hidden, excluded extension, extension allow-list, non-text,
    include globs, exclude globs.
    """

    def __init__(self, config: Config, *, source: SourceAdapter | None = None) -> None:
        self.config = config
        self.source = source

    def apply(self, candidates: Iterable[CandidateFile]) -> FilterOutcome:
        matched: list[MatchedFile] = []
        skipped: list[Skipped] = []
        for candidate in candidates:
            rejection = self.check(candidate)
            if rejection is None:
                logger.info('Matched file: "%s"', candidate.path)
                matched.append(MatchedFile.from_candidate(candidate))
            else:
                logger.info('Skipped file: "%s" (%s)', candidate.path, rejection.describe())
                skipped.append(rejection)
        logger.info("Total matched files: %d", len(matched))
        return FilterOutcome(matched=tuple(matched), skipped=tuple(skipped))

    def check(self, candidate: CandidateFile) -> Skipped | None:
        config = self.config

        if config.output_path is not None and candidate.path == config.output_path:
            return Skipped(candidate, SkipReason.OUTPUT_FILE, "is the output file")

        if not config.include_hidden and candidate.hidden and not self._hidden_allowed(candidate):
            return Skipped(candidate, SkipReason.HIDDEN, "hidden and not explicitly included")

        extension = self._extension(candidate)
        if extension and extension in config.extensions_exclude:
            return Skipped(candidate, SkipReason.IGNORED_EXTENSION, f"'{extension}' is excluded")

        if config.extensions_include and extension not in config.extensions_include:
            wanted = ", ".join(sorted(config.extensions_include))
            return Skipped(
                candidate,
                SkipReason.EXTENSION_NOT_MATCHED,
                f"'{extension or '(none)'}' not in {{{wanted}}}",
            )

        if config.exclude_non_text:
            if has_binary_extension(candidate.path):
                return Skipped(candidate, SkipReason.NON_TEXT, "known binary extension")
            if looks_binary(candidate.path, source=self.source):
                return Skipped(candidate, SkipReason.NON_TEXT, "not text")

        if config.include_globs and self._first_match(candidate, config.include_globs) is None:
            return Skipped(candidate, SkipReason.INCLUDE_MISMATCH, "include glob mismatch")

        if config.exclude_globs:
            pattern = self._first_match(candidate, config.exclude_globs, basename=True)
            if pattern is not None:
                return Skipped(candidate, SkipReason.EXCLUDE_MATCH, f"exclude glob match: '{pattern}'")

        return None

    def _extension(self, candidate: CandidateFile) -> str:
        extension = candidate.extension
        # Suffixes like '. ' carry no usable extension
        if not extension.strip().lstrip("."):
            return ""
        return normalize_extension(extension, case_sensitive=self.config.case_sensitive)

    def _hidden_allowed(self, candidate: CandidateFile) -> bool:
        if candidate.explicit:
            return True
        hidden_globs = [p for p in self.config.include_globs if targets_hidden(p)]
        return bool(hidden_globs) and self._first_match(candidate, hidden_globs) is not None

    def _first_match(
        self, candidate: CandidateFile, patterns: Iterable[str], *, basename: bool = False
    ) -> str | None:
        case_sensitive = self.config.case_sensitive
        for pattern in patterns:
            if self._matches_path(candidate, pattern):
                return pattern
            if basename and matches_glob(candidate.name, pattern, case_sensitive=case_sensitive):
                return pattern
        return None

    def _matches_path(self, candidate: CandidateFile, pattern: str) -> bool:
        """
        Absolute patterns match the absolute path. Relative ones match the root-relative
        path, or any suffix of the full path that reaches below the input root.
        """
        case_sensitive = self.config.case_sensitive
        full_path = candidate.path.as_posix()
        if pattern.startswith("/"):
            return matches_glob(full_path, pattern, case_sensitive=case_sensitive)
        if matches_glob(candidate.relative_path, pattern, case_sensitive=case_sensitive):
            return True
        if "/" not in pattern:
            # Already floats to any depth below the root
            return False
        if candidate.root.name:
            from_root = f"{candidate.root.name}/{candidate.relative_path}"
            if matches_glob(from_root, pattern, case_sensitive=case_sensitive):
                return True
        suffix = pattern if pattern.startswith("**/") else f"**/{pattern}"
        if not matches_glob(full_path, suffix, case_sensitive=case_sensitive):
            return False
        # A match that already covers the root comes from directories above it
        return not matches_glob(candidate.root.as_posix(), suffix, case_sensitive=case_sensitive)
