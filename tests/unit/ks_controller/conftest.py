import pytest

from tests.helpers.fakes import RecordingUI


@pytest.fixture
def recording_ui() -> RecordingUI:
    return RecordingUI()


@pytest.fixture
def events() -> list:
    return []
