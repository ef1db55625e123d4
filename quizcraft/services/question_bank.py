"""Loader for the hand-authored fallback question bank."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List

import yaml

from quizcraft.schemas.quiz import Question

logger = logging.getLogger(__name__)

BANK_PATH = Path(__file__).resolve().parent.parent / "data" / "question_bank.yaml"


def load_question_bank(path: Path = BANK_PATH) -> Dict[str, List[Question]]:
    """Read the YAML bank into validated questions keyed by topic."""
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    bank: Dict[str, List[Question]] = {}
    for topic, entries in (raw.get("topics") or {}).items():
        bank[topic] = [Question(**entry) for entry in entries or []]

    logger.debug("Loaded fallback bank: %d topics", len(bank))
    return bank


@lru_cache
def get_question_bank() -> Dict[str, List[Question]]:
    return load_question_bank()
