import logging
import os
from typing import Any, Dict, List, Optional, Set, Union

import pandas as pd
from pydantic import TypeAdapter

from .models import BANK_INFO, ChoiceKey, Question, QuestionBank, default_bank

logger = logging.getLogger(__name__)

CSV_COLUMNS = {"id", "question", "image", "a", "b", "c", "answer", "explanation"}

_question_list = TypeAdapter(List[Question])


class QuestionsUnavailable(Exception):
    """The provider could not supply questions for a bank."""

    def __init__(self, bank: QuestionBank, reason: str = "no questions loaded"):
        super().__init__(f"Questions unavailable for bank '{bank.value}': {reason}")
        self.bank = bank
        self.reason = reason


def _resolve_bank(bank: Union[QuestionBank, str, None]) -> QuestionBank:
    if isinstance(bank, QuestionBank):
        return bank
    try:
        return QuestionBank(bank)
    except ValueError:
        return default_bank()


def read_json_bank(file_path: str) -> List[Question]:
    with open(file_path, "rb") as f:
        return _question_list.validate_json(f.read())


def read_csv_bank(file_path: str) -> List[Question]:
    """Reads the flat CSV layout: one row per question, one column per choice.

    An empty ``c`` cell makes a two-choice question.
    """
    df = pd.read_csv(file_path, encoding="utf-8", dtype=str, keep_default_na=False)
    missing = CSV_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(f"missing columns: {', '.join(sorted(missing))}")

    records: List[Dict[str, Any]] = []
    for row in df.to_dict("records"):
        choices = [
            {"key": key.value, "text": row[key.value].strip()}
            for key in ChoiceKey
            if row[key.value].strip()
        ]
        records.append(
            {
                "id": row["id"].strip(),
                "question": row["question"],
                "image": row["image"].strip() or None,
                "choices": choices,
                "answer": row["answer"].strip().lower(),
                "explanation": row["explanation"].strip() or None,
            }
        )
    return _question_list.validate_python(records)


# --- Service Layer: Question Banks ---
class QuestionProvider:
    """Loads the static question banks and serves them by bank id."""

    def __init__(
        self,
        directory: Optional[str] = None,
        banks: Optional[Dict[QuestionBank, List[Question]]] = None,
    ):
        self.directory = directory
        self.banks: Dict[QuestionBank, List[Question]] = dict(banks or {})
        self.broken: Set[QuestionBank] = set()

    def load_all(self):
        if self.directory is None:
            return
        self.banks = {}
        self.broken = set()
        if not os.path.exists(self.directory):
            os.makedirs(self.directory)
            logger.warning(
                f"Created directory {self.directory}. Please add question banks."
            )
            return

        for bank in QuestionBank:
            for ext, reader in ((".json", read_json_bank), (".csv", read_csv_bank)):
                file_path = os.path.join(self.directory, bank.value + ext)
                if not os.path.exists(file_path):
                    continue
                try:
                    self.banks[bank] = reader(file_path)
                    logger.info(
                        f"Loaded {len(self.banks[bank])} questions from {file_path}"
                    )
                except (OSError, ValueError) as e:
                    self.broken.add(bank)
                    logger.error(f"Failed to load {file_path}: {e}")
                break
            else:
                logger.warning(f"No question file for bank '{bank.value}'")

    def fetch(self, bank: Union[QuestionBank, str, None] = None) -> List[Question]:
        """Returns the bank's questions in file order.

        Raises QuestionsUnavailable when the bank is missing or failed to load.
        """
        resolved = _resolve_bank(bank)
        if resolved in self.broken:
            raise QuestionsUnavailable(resolved, "bank file is invalid")
        if resolved not in self.banks:
            raise QuestionsUnavailable(resolved)
        return list(self.banks[resolved])

    def get_banks(self) -> List[Dict[str, Any]]:
        banks = []
        for bank in QuestionBank:
            info = BANK_INFO[bank]
            questions = self.banks.get(bank, [])
            banks.append(
                {
                    "id": bank.value,
                    "title": info["title"],
                    "description": info["description"],
                    "count": len(questions),
                    "available": bank in self.banks,
                }
            )
        return banks
