"""Turn free-text model output into a :class:`ProvisioningDirective`.

The parsing strategy sits behind :class:`DirectiveParser` so a different one
(a grammar, or a structured-output contract with the model) can replace the
labelled-field regexes without touching the planner or executor.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Protocol, Sequence, Tuple

from .defaults import BASELINE_FEATURES
from .planning.schemas import (
    DEFAULT_TECH_STACK,
    FeatureDirective,
    ProvisioningDirective,
    is_valid_repository_name,
)

__all__ = [
    "DirectiveExtractor",
    "DirectiveParser",
    "ExtractionError",
    "LabeledFieldParser",
    "ParsedFields",
    "normalize_service_name",
    "split_tech_stack",
]

LOGGER = logging.getLogger(__name__)

_SERVICE_NAME_LABEL_RE = re.compile(r"service\s+name[*_]*\s*:", re.IGNORECASE)
_TECH_STACK_LABEL_RE = re.compile(r"technology\s+stack[*_]*\s*:", re.IGNORECASE)
# Any "Label:" line, optionally bulleted or emphasised.
_FIELD_LINE_RE = re.compile(r"^\s*(?:[-*+]\s+)?[#*_\s]*[A-Za-z][\w /()-]*?[*_]*\s*:[*_]*(?:\s|$)")
_LABEL_CLOSE_RE = re.compile(r"^[*_]+")
_FEATURES_LABEL_RE = re.compile(r"^\s*(?:#+\s*)?[*_]*features[*_]*\s*:?\s*[*_]*\s*$", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.+?)\s*$")
_FEATURE_SPLIT_RE = re.compile(r"\s*(?::|\s-\s|\s–\s)\s*")
_STACK_SPLIT_RE = re.compile(r"[,\s]+")

_WRAPPING_CHARS = "*`\"'"
_TRAILING_PUNCTUATION = ".,;:"
_TOKEN_STRIP_CHARS = "()[]{}*`\"'"
_EMPHASIS_CHARS = " \t*_`"


class ExtractionError(ValueError):
    """Raised when model output carries no usable service name."""


@dataclass(slots=True)
class ParsedFields:
    """Raw field values recovered by a parser; ``None`` means absent."""

    service_name: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    features: List[FeatureDirective] = field(default_factory=list)


class DirectiveParser(Protocol):
    def parse(self, text: str) -> ParsedFields: ...


def normalize_service_name(raw: str) -> str:
    """Strip markdown/quote wrapping and trailing punctuation, then validate.

    Raises :class:`ExtractionError` when what remains is not a valid
    repository name. The value is never rewritten into something else.
    """
    candidate = raw.strip().strip(_WRAPPING_CHARS).rstrip(_TRAILING_PUNCTUATION).strip(_WRAPPING_CHARS)
    if not is_valid_repository_name(candidate):
        raise ExtractionError(
            f"Service name '{raw}' is not a valid repository name "
            "(allowed: letters, digits, '.', '-', '_'; at most 100 characters)."
        )
    return candidate


def split_tech_stack(raw: str) -> List[str]:
    """Split a comma/space separated stack into unique lowercase tokens.

    Pieces with no letters or digits (stray bullet markers, dashes) are dropped.
    """
    tokens: List[str] = []
    for piece in _STACK_SPLIT_RE.split(raw):
        token = piece.strip(_TOKEN_STRIP_CHARS).rstrip(_TRAILING_PUNCTUATION).strip(_TOKEN_STRIP_CHARS).lower()
        if not any(char.isalnum() for char in token) or token in tokens:
            continue
        tokens.append(token)
    return tokens


def _after_label(text: str, label: Pattern[str]) -> Optional[Tuple[str, List[str]]]:
    """Return the inline value after the first ``label`` and the lines below it.

    The inline value is ``""`` when the label line carries nothing but emphasis.
    """
    match = label.search(text)
    if match is None:
        return None
    inline, _, rest = text[match.end() :].partition("\n")
    inline = _LABEL_CLOSE_RE.sub("", inline).strip()
    if not inline.strip(_EMPHASIS_CHARS):
        inline = ""
    return inline, rest.splitlines()


class LabeledFieldParser:
    """Regex parser for ``Service Name:`` / ``Technology Stack:`` / ``Features:``.

    A blank field may take its value from the next line, but never from a line
    that is itself a ``Label:`` field.
    """

    def parse(self, text: str) -> ParsedFields:
        fields = ParsedFields()
        fields.service_name = self._parse_service_name(text)
        fields.tech_stack = self._parse_tech_stack(text)
        fields.features = self._parse_features(text)
        return fields

    @staticmethod
    def _parse_service_name(text: str) -> Optional[str]:
        located = _after_label(text, _SERVICE_NAME_LABEL_RE)
        if located is None:
            return None
        value, following = located
        if not value:
            if not following or _FIELD_LINE_RE.match(following[0]):
                return None
            bullet = _BULLET_RE.match(following[0])
            value = bullet.group(1) if bullet else following[0].strip()
            if not value.strip(_EMPHASIS_CHARS):
                return None
        return value.split()[0]

    @staticmethod
    def _parse_tech_stack(text: str) -> Optional[List[str]]:
        located = _after_label(text, _TECH_STACK_LABEL_RE)
        if located is None:
            return None
        value, following = located
        if value:
            return split_tech_stack(value)

        items: List[str] = []
        for line in following:
            bullet = _BULLET_RE.match(line)
            if bullet is None:
                if not items and line.strip() and not _FIELD_LINE_RE.match(line):
                    items.append(line)
                break
            # "- FastAPI: web framework" contributes only "FastAPI".
            items.append(_FEATURE_SPLIT_RE.split(bullet.group(1), maxsplit=1)[0])
        return split_tech_stack(", ".join(items))

    @staticmethod
    def _parse_features(text: str) -> List[FeatureDirective]:
        features: List[FeatureDirective] = []
        lines = text.splitlines()
        start = next((index for index, line in enumerate(lines) if _FEATURES_LABEL_RE.match(line)), None)
        if start is None:
            return features

        for line in lines[start + 1 :]:
            if not line.strip():
                if features:
                    break
                continue
            bullet = _BULLET_RE.match(line)
            if not bullet:
                break
            item = bullet.group(1).replace("**", "").replace("__", "").strip()
            parts = _FEATURE_SPLIT_RE.split(item, maxsplit=1)
            title = parts[0].strip()
            if not title:
                continue
            description = parts[1].strip() if len(parts) > 1 else ""
            features.append(FeatureDirective(title=title, description=description))
        return features


class DirectiveExtractor:
    """Deterministically derive a directive from response text."""

    def __init__(
        self,
        parser: Optional[DirectiveParser] = None,
        *,
        baseline_features: Sequence[FeatureDirective] = BASELINE_FEATURES,
        default_stack: Sequence[str] = DEFAULT_TECH_STACK,
    ) -> None:
        self._parser = parser or LabeledFieldParser()
        self._baseline = tuple(baseline_features)
        self._default_stack = list(default_stack)

    def extract(self, response_text: str) -> ProvisioningDirective:
        """Return the directive; an absent service name yields an empty one."""
        fields = self._parser.parse(response_text)

        service_name = ""
        if fields.service_name is not None:
            service_name = normalize_service_name(fields.service_name)
        else:
            LOGGER.info("No 'Service Name:' field found in model output.")

        tech_stack = fields.tech_stack or list(self._default_stack)
        return ProvisioningDirective(
            service_name=service_name,
            tech_stack=tech_stack,
            features=self._merge_features(fields.features),
        )

    def _merge_features(self, extracted: Sequence[FeatureDirective]) -> List[FeatureDirective]:
        baseline_titles = {feature.title.casefold() for feature in self._baseline}
        merged: List[FeatureDirective] = []
        seen: set[str] = set()
        for feature in extracted:
            key = feature.title.casefold()
            if key in baseline_titles or key in seen:
                continue
            seen.add(key)
            merged.append(feature)
        merged.extend(self._baseline)
        return merged
