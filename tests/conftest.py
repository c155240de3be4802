import logging

import pytest


@pytest.fixture
def restore_root_logging():
    """Undo configure_logging so later tests keep pytest's own handlers."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
