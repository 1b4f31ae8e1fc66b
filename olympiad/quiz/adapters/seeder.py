import json
import os
from typing import Any

from olympiad.config import Language
from olympiad.quiz.domain.ports import IQuestionRepository
from olympiad.shared.telemetry import Telemetry

# Seed files map a language name to its raw question documents:
#   {"english": [{"id": "q1", "Question": "...", "Answer": "B", ...}], ...}
# Documents are stored as-is; normalization happens on read.


class DataSeeder:
    """
    Populates the question banks from a JSON seed file.
    """

    def __init__(self, repo: IQuestionRepository) -> None:
        self.repo = repo
        self.telemetry = Telemetry("DataSeeder")

    def load(self, seed_file: str) -> dict[Language, int]:
        with open(seed_file, encoding="utf-8") as f:
            data: dict[str, list[dict[str, Any]]] = json.load(f)

        seeded: dict[Language, int] = {}
        for name, docs in data.items():
            try:
                language = Language(name.strip().lower())
            except ValueError:
                self.telemetry.log_warning("Unknown language in seed file", language=name)
                continue
            seeded[language] = self.repo.seed_questions(language, docs)
        return seeded

    def seed_if_empty(self, seed_file: str) -> dict[Language, int]:
        """
        Loads the seed file only when the store holds no questions yet.
        A missing seed file is logged, not raised.
        """
        if not self.repo.is_empty():
            return {}

        if not os.path.exists(seed_file):
            self.telemetry.log_warning("Seed file not found", seed_file=seed_file)
            return {}

        self.telemetry.log_info("Store appears empty. Seeding...", seed_file=seed_file)
        seeded = self.load(seed_file)
        self.telemetry.log_info(
            "Seeding complete", counts={k.value: v for k, v in seeded.items()}
        )
        return seeded
