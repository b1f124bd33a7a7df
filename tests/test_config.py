import pytest

from utils.constants import MAX_SAMPLE_WORK
from workisready.core.config import settings, validate_settings
from workisready.core.logging import get_logger


def test_sample_work_limit_cannot_exceed_gallery_ceiling(monkeypatch):
    monkeypatch.setattr(settings, "SAMPLE_WORK_LIMIT", MAX_SAMPLE_WORK + 2)
    with pytest.raises(ValueError, match="SAMPLE_WORK_LIMIT must be between 1 and 10"):
        validate_settings()


def test_sample_work_limit_must_be_positive(monkeypatch):
    monkeypatch.setattr(settings, "SAMPLE_WORK_LIMIT", 0)
    with pytest.raises(ValueError, match="SAMPLE_WORK_LIMIT"):
        validate_settings()


def test_module_loggers_keep_their_name():
    assert get_logger("workisready.services.provider_service").name == "workisready.services.provider_service"
    assert get_logger("workisready").name == "workisready"


def test_outside_loggers_are_nested_under_app():
    assert get_logger("scripts.seed").name == "workisready.scripts.seed"
