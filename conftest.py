import os

import pytest

TEXT_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "text_files")


@pytest.fixture
def text_file():
    """Return a function that reads a challenge data file, skipping if absent."""
    def read(name):
        path = os.path.join(TEXT_DIR, name)
        if not os.path.exists(path):
            pytest.skip("{} not found".format(path))
        with open(path) as f:
            return f.read()
    return read
