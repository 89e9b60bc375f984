from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from codequest.core.errors import ContentLoadError
from codequest.core.rules import CATEGORIES, LEVELS_PER_SESSION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Token:
    id: str
    text: str
    type: str = "default"


@dataclass(frozen=True)
class Blank:
    index: int
    answer: str


@dataclass(frozen=True)
class Line:
    """One code line: either static text or a template with up to two blanks."""

    static: Optional[str] = None
    prefix: str = ""
    blank: Optional[int] = None
    suffix: str = ""
    blank2: Optional[int] = None
    suffix2: str = ""

    @property
    def is_editable(self) -> bool:
        return self.static is None and (self.blank is not None or self.blank2 is not None)

    def blank_indices(self) -> List[int]:
        return [i for i in (self.blank, self.blank2) if i is not None]

    def segments(self) -> List[Union[str, int]]:
        """Literal strings and blank indices in render order."""
        if self.static is not None:
            return [self.static]
        parts: List[Union[str, int]] = [self.prefix]
        if self.blank is not None:
            parts.append(self.blank)
        parts.append(self.suffix)
        if self.blank2 is not None:
            parts.append(self.blank2)
            parts.append(self.suffix2)
        return [p for p in parts if p != ""]


@dataclass(frozen=True)
class Puzzle:
    id: str
    instruction: str
    language: str
    lines: tuple[Line, ...]
    blanks: tuple[Blank, ...]
    tokens: tuple[Token, ...]

    @property
    def blank_count(self) -> int:
        return len(self.blanks)


def _line_from_dict(raw: Any, where: str) -> Line:
    if isinstance(raw, str):
        return Line(static=raw)
    if not isinstance(raw, dict):
        raise ContentLoadError(f"{where}: line must be a mapping or a string")
    if "static" in raw:
        return Line(static=str(raw["static"]))

    def _index(key: str) -> Optional[int]:
        value = raw.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ContentLoadError(f"{where}: '{key}' must be an integer, got {value!r}") from None

    blank = _index("blank")
    blank2 = _index("blank2")
    if blank is None and blank2 is not None:
        raise ContentLoadError(f"{where}: 'blank2' given without 'blank'")
    return Line(
        prefix=str(raw.get("prefix", "")),
        blank=blank,
        suffix=str(raw.get("suffix", "")),
        blank2=blank2,
        suffix2=str(raw.get("suffix2", "")),
    )


def _puzzle_from_dict(raw: Any, where: str, default_id: str, default_language: str) -> Puzzle:
    if not isinstance(raw, dict):
        raise ContentLoadError(f"{where}: expected a mapping")

    raw_lines = raw.get("lines")
    raw_blanks = raw.get("blanks")
    raw_tokens = raw.get("tokens")
    if not raw_lines or not isinstance(raw_lines, list):
        raise ContentLoadError(f"{where}: missing or invalid 'lines'")
    if not raw_blanks or not isinstance(raw_blanks, list):
        raise ContentLoadError(f"{where}: missing or invalid 'blanks'")
    if not raw_tokens or not isinstance(raw_tokens, list):
        raise ContentLoadError(f"{where}: missing or invalid 'tokens'")

    lines = tuple(_line_from_dict(item, f"{where}, line {n + 1}") for n, item in enumerate(raw_lines))

    blanks: List[Blank] = []
    for position, item in enumerate(raw_blanks):
        if isinstance(item, dict):
            if "answer" not in item:
                raise ContentLoadError(f"{where}: blank {position} has no 'answer'")
            try:
                index = int(item.get("index", position))
            except (TypeError, ValueError):
                raise ContentLoadError(f"{where}: blank {position} has an invalid 'index'") from None
            answer = str(item["answer"])
        else:
            index, answer = position, str(item)
        blanks.append(Blank(index=index, answer=answer))
    blanks.sort(key=lambda b: b.index)

    expected = list(range(len(blanks)))
    if [b.index for b in blanks] != expected:
        raise ContentLoadError(f"{where}: blank indices must be 0..{len(blanks) - 1} without gaps")

    referenced = [i for line in lines for i in line.blank_indices()]
    if sorted(referenced) != expected:
        raise ContentLoadError(
            f"{where}: lines reference blanks {sorted(referenced)}, expected each of {expected} exactly once"
        )

    tokens: List[Token] = []
    seen_ids: set[str] = set()
    for position, item in enumerate(raw_tokens):
        if not isinstance(item, dict) or "text" not in item:
            raise ContentLoadError(f"{where}: token {position} must be a mapping with 'text'")
        token_id = str(item.get("id", f"t{position}"))
        if token_id in seen_ids:
            raise ContentLoadError(f"{where}: duplicate token id '{token_id}'")
        seen_ids.add(token_id)
        tokens.append(Token(id=token_id, text=str(item["text"]), type=str(item.get("type", "default"))))

    token_texts = {t.text for t in tokens}
    for blank in blanks:
        if blank.answer not in token_texts:
            raise ContentLoadError(f"{where}: no token provides the answer {blank.answer!r} for blank {blank.index}")

    return Puzzle(
        id=str(raw.get("id", default_id)),
        instruction=str(raw.get("instruction", "")).strip(),
        language=str(raw.get("language", default_language)),
        lines=lines,
        blanks=tuple(blanks),
        tokens=tuple(tokens),
    )


def parse_puzzles(payload: Any, source: str, category: str) -> List[Puzzle]:
    """Validate a decoded catalog (a list of puzzle mappings)."""
    if not payload or not isinstance(payload, list):
        raise ContentLoadError(f"{source}: expected a non-empty list of puzzles")
    language = CATEGORIES[category].label if category in CATEGORIES else category
    puzzles = [
        _puzzle_from_dict(item, f"{source}, puzzle #{n + 1}", f"{category}-{n + 1}", language)
        for n, item in enumerate(payload)
    ]
    ids = [p.id for p in puzzles]
    duplicates = sorted({i for i in ids if ids.count(i) > 1})
    if duplicates:
        raise ContentLoadError(f"{source}: duplicate puzzle ids {duplicates}")
    return puzzles


class PuzzleRepository:
    """Loads per-category puzzle catalogs from ``data/puzzles/<category>.yaml``."""

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        if base_dir is None:
            base_dir = Path(__file__).resolve().parent.parent / "data" / "puzzles"
        self._base_dir = base_dir

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def categories(self) -> List[str]:
        return list(CATEGORIES)

    def load(self, category: str) -> List[Puzzle]:
        """Return every puzzle of a category, raising ContentLoadError when none can be used."""
        if category not in CATEGORIES:
            raise ContentLoadError(f"Unknown puzzle category: {category!r}")
        path = self._base_dir / CATEGORIES[category].file_name
        if not path.exists():
            raise ContentLoadError(f"Puzzle file not found: {path}")
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError, UnicodeDecodeError) as e:
            raise ContentLoadError(f"{path.name}: could not read puzzles: {e}") from e
        puzzles = parse_puzzles(payload, path.name, category)
        logger.info("Loaded %d %s puzzles from %s", len(puzzles), category, path)
        return puzzles


def draw_levels(
    puzzles: Sequence[Puzzle],
    count: int = LEVELS_PER_SESSION,
    rng: Optional[random.Random] = None,
) -> List[Puzzle]:
    """Pick up to ``count`` puzzles without replacement, in random order."""
    if not puzzles:
        raise ContentLoadError("No puzzles to draw levels from")
    rng = rng or random.Random()
    return rng.sample(list(puzzles), min(count, len(puzzles)))
