from typing import Any

from pydantic import ValidationError

from olympiad.quiz.domain.errors import ConfigurationError
from olympiad.quiz.domain.models import QuizConfig, utc_now
from olympiad.quiz.domain.ports import IQuizConfigStore
from olympiad.shared.telemetry import Telemetry, measure_time

EDITABLE_FIELDS = (
    "daily_quiz_question_count",
    "easy_percentage",
    "medium_percentage",
    "hard_percentage",
)

# camelCase wire name -> field name
FIELD_ALIASES = {
    field.alias: name
    for name, field in QuizConfig.model_fields.items()
    if field.alias and name in EDITABLE_FIELDS
}


def normalize_updates(updates: dict[str, Any]) -> dict[str, Any]:
    normalized = {}
    for key, value in updates.items():
        name = FIELD_ALIASES.get(key, key)
        if name in EDITABLE_FIELDS and value is not None:
            normalized[name] = value
    return normalized


class QuizConfigService:
    def __init__(self, store: IQuizConfigStore) -> None:
        self.store = store
        self.telemetry = Telemetry("QuizConfigService")

    def get_config(self) -> QuizConfig:
        """Returns the stored config, creating the default record on first read."""
        config = self.store.get_config()
        if config is None:
            config = QuizConfig()
            self.store.save_config(config)
            self.telemetry.log_info("Created default quiz config")
        return config

    @measure_time("update_quiz_config")
    def update_config(self, updates: dict[str, Any]) -> QuizConfig:
        """
        Merges `updates` (snake_case or camelCase keys) into the current
        config and stores it. Raises ConfigurationError and leaves the
        stored record untouched if the result is invalid.
        """
        current = self.get_config()
        data = current.model_dump()
        data.update(normalize_updates(updates))
        data["updated_at"] = utc_now()

        try:
            candidate = QuizConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                [f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()]
            ) from e

        errors = candidate.validation_errors()
        if errors:
            self.telemetry.log_warning("Rejected quiz config update", errors=errors)
            raise ConfigurationError(errors)

        self.store.save_config(candidate)
        self.telemetry.log_info(
            "Quiz config updated",
            count=candidate.daily_quiz_question_count,
            easy=candidate.easy_percentage,
            medium=candidate.medium_percentage,
            hard=candidate.hard_percentage,
        )
        return candidate
