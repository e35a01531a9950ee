"""Content repository: passages and practice items, loaded once and read-only afterwards."""
import json
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

from toeic_tutor.models import KIND_PROFILES, ContentItem, ItemId, Passage, PassageId

CONTENT_DIR = Path(__file__).parent / "content"
BUNDLED_CONTENT = CONTENT_DIR / "reading.json"

FALLBACK_CONTENT = {
    "passages": [
        {
            "id": "fallback_001",
            "genre": "business_email",
            "title": "Sample Business Email",
            "body": (
                "Dear Colleagues,\n\n"
                "I hope this message finds you well. I am writing to update you on our "
                "quarterly performance and upcoming projects.\n\n"
                "Our team has achieved excellent results this quarter, exceeding our targets "
                "by 15%. This success is due to the hard work and dedication of all team members.\n\n"
                "Looking ahead, we have several exciting projects planned for the next quarter. "
                "I will be scheduling individual meetings with each department to discuss "
                "specific goals and expectations.\n\n"
                "Thank you for your continued commitment to excellence.\n\n"
                "Best regards,\nManagement"
            ),
            "word_count": 80,
            "difficulty": "B1",
            "category": "business_communication",
        }
    ],
    "items": [
        {
            "id": "q_fallback_001",
            "kind": "comprehension",
            "passage_id": "fallback_001",
            "prompt": "What is the main purpose of this email?",
            "options": [
                "To announce a new project",
                "To update on quarterly performance",
                "To schedule a meeting",
                "To request feedback",
            ],
            "correct_index": 1,
            "explanation": "The email is updating colleagues on quarterly performance and upcoming projects.",
            "difficulty": "B1",
        }
    ],
}


class ContentError(ValueError):
    """A definition set is missing, unreadable or structurally invalid."""


def read_definition_file(path: Path) -> dict:
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ContentError(f"cannot read {path}: {e}") from e
    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ContentError(f"cannot parse {path}: {e}") from e
    if not isinstance(data, dict):
        raise ContentError(f"{path} does not contain a mapping")
    return data


def _parse_passage(raw: dict) -> Passage:
    try:
        return Passage(
            id=PassageId(str(raw["id"])),
            title=str(raw["title"]),
            body=str(raw["body"]),
            word_count=int(raw.get("word_count") or len(str(raw["body"]).split())),
            difficulty=str(raw.get("difficulty", "B1")),
            category=str(raw.get("category", "")),
            genre=str(raw.get("genre", "")),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ContentError(f"bad passage {raw!r}: {e}") from e


def _parse_item(raw: dict, passages: dict) -> ContentItem:
    try:
        item_id = ItemId(str(raw["id"]))
        kind = str(raw["kind"])
        options = tuple(str(o) for o in raw["options"])
        correct_index = int(raw["correct_index"])
        passage_id = raw.get("passage_id")
        item = ContentItem(
            id=item_id,
            kind=kind,
            prompt=str(raw["prompt"]),
            options=options,
            correct_index=correct_index,
            explanation=str(raw.get("explanation", "")),
            difficulty=str(raw.get("difficulty", "B1")),
            passage_id=PassageId(str(passage_id)) if passage_id else None,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ContentError(f"bad item {raw!r}: {e}") from e

    if kind not in KIND_PROFILES:
        raise ContentError(f"item {item_id} has unknown kind '{kind}'")
    if len(options) < 2:
        raise ContentError(f"item {item_id} needs at least two options")
    if not 0 <= correct_index < len(options):
        raise ContentError(f"item {item_id} correct_index {correct_index} is out of range")
    if item.passage_id is not None and item.passage_id not in passages:
        raise ContentError(f"item {item_id} references missing passage {item.passage_id}")
    if kind == "comprehension" and item.passage_id is None:
        raise ContentError(f"comprehension item {item_id} has no passage")
    return item


def parse_definitions(data: dict) -> tuple[dict, dict]:
    """Build typed passage and item tables from a raw definition mapping.

    Raises ContentError on the first structural problem.
    """
    if not isinstance(data, dict):
        raise ContentError("definition set is not a mapping")
    for section in ("passages", "items"):
        if not isinstance(data.get(section) or [], list):
            raise ContentError(f"'{section}' must be a list")
    passages: dict[PassageId, Passage] = {}
    for raw in data.get("passages") or []:
        passage = _parse_passage(raw)
        if passage.id in passages:
            raise ContentError(f"duplicate passage id {passage.id}")
        passages[passage.id] = passage

    items: dict[ItemId, ContentItem] = {}
    for raw in data.get("items") or []:
        item = _parse_item(raw, passages)
        if item.id in items:
            raise ContentError(f"duplicate item id {item.id}")
        items[item.id] = item

    if not items:
        raise ContentError("definition set has no items")
    return passages, items


class ContentRepository:
    """Holds the catalog of practice items and the passages they reference."""

    def __init__(self):
        self._passages: dict[PassageId, Passage] = {}
        self._items: dict[ItemId, ContentItem] = {}
        self.source: Optional[str] = None
        self.using_fallback = False

    def load(self, path: str | Path | None = None) -> "ContentRepository":
        """Load a definition set, falling back to the built-in item if it is unusable."""
        source = Path(path) if path else BUNDLED_CONTENT
        try:
            data = read_definition_file(source)
        except ContentError as e:
            self._load_fallback(e)
            return self
        return self.load_definitions(data, source=str(source))

    def load_definitions(self, data: dict, source: str = "memory") -> "ContentRepository":
        try:
            passages, items = parse_definitions(data)
        except ContentError as e:
            self._load_fallback(e)
            return self
        self._install(passages, items, source)
        return self

    def _load_fallback(self, reason: Exception) -> None:
        logger.warning(f"Content unavailable ({reason}); using fallback reading materials")
        passages, items = parse_definitions(FALLBACK_CONTENT)
        self._install(passages, items, "fallback")

    def _install(self, passages: dict, items: dict, source: str) -> None:
        self._passages = passages
        self._items = items
        self.source = source
        self.using_fallback = source == "fallback"
        # Reverse references: one pass over the items.
        for item in self._items.values():
            if item.passage_id is not None:
                self._passages[item.passage_id].item_ids.append(item.id)
        logger.info(f"Loaded {len(self._passages)} passages and {len(self._items)} questions from {source}")

    def get_item(self, item_id: str) -> Optional[ContentItem]:
        return self._items.get(ItemId(item_id))

    def get_passage(self, passage_id: str) -> Optional[Passage]:
        return self._passages.get(PassageId(passage_id))

    def items(self) -> list[ContentItem]:
        return list(self._items.values())

    def passages(self) -> list[Passage]:
        return list(self._passages.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def search_passages(self, query: str) -> list[Passage]:
        q = query.lower()
        return [
            p for p in self._passages.values()
            if q in p.title.lower() or q in p.body.lower() or q in p.category.lower()
        ]
