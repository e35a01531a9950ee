import pytest
from loguru import logger

from toeic_tutor.repository import ContentRepository
from toeic_tutor.storage import MemoryProgressStore
from toeic_tutor.tracker import MasteryTracker


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


def build_definitions(short_answer=4, comprehension=3, cloze=0, difficulty="B1"):
    """A small definition set: one passage, the requested number of items per kind.

    Every item's correct option is index 0.
    """
    items = []
    for kind, count in (("short_answer", short_answer), ("comprehension", comprehension), ("cloze", cloze)):
        for n in range(count):
            item = {
                "id": f"{kind}_{n}",
                "kind": kind,
                "prompt": f"{kind} question {n}",
                "options": ["right", "wrong", "also wrong", "still wrong"],
                "correct_index": 0,
                "explanation": f"Explanation for {kind} {n}",
                "difficulty": difficulty,
            }
            if kind != "short_answer":
                item["passage_id"] = "p1"
            items.append(item)
    return {
        "passages": [{
            "id": "p1",
            "title": "Quarterly Update",
            "body": "Our team exceeded its targets this quarter.",
            "word_count": 100,
            "difficulty": difficulty,
            "category": "business_communication",
        }],
        "items": items,
    }


@pytest.fixture
def definitions():
    return build_definitions


@pytest.fixture
def repository():
    """Ten items: seven short answer, three comprehension."""
    return ContentRepository().load_definitions(build_definitions(short_answer=7, comprehension=3))


@pytest.fixture
def store():
    return MemoryProgressStore()


@pytest.fixture
def tracker(repository, store):
    return MasteryTracker(repository, store)


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record), level="DEBUG")
    yield messages
    logger.remove(handler_id)
