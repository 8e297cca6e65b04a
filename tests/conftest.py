import logging

import pytest

from mpi_hypercube.log import LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_input(tmp_path):
    def _write(text, name="values.txt"):
        path = tmp_path / name
        path.write_bytes(text.encode("utf-8") if isinstance(text, str) else text)
        return path
    return _write
