from unittest.mock import AsyncMock

import pytest

from helpers.fakes import (
    FakeAnalysisRepository,
    FakeAssessmentRepository,
    FakeProfileRepository,
    FakeUserRepository,
)


@pytest.fixture
def mock_db():
    """AsyncMock standing in for AsyncSession — flush/commit are no-ops."""
    return AsyncMock()


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def profile_repo():
    return FakeProfileRepository()


@pytest.fixture
def assessment_repo():
    return FakeAssessmentRepository()


@pytest.fixture
def analysis_repo():
    return FakeAnalysisRepository()
