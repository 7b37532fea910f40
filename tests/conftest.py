from collections.abc import Iterator

import pytest

from sqlfacade.config import reset_global_config
from sqlfacade.utils.logging import set_correlation_id


@pytest.fixture(autouse=True)
def _reset_global_state() -> "Iterator[None]":
    reset_global_config()
    yield
    reset_global_config()
    set_correlation_id(None)
