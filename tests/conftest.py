from pathlib import Path

import pytest

from shared.config import OrdinalConfig
from shared.logger import OrdinalLogger

from ordinal.core.engine import OrdinalEngine
from pe_builder import build_pe

SAMPLE_NAMES = ["AddNumbers", "GetVersionInfo", "_Sleep@4", "Shutdown"]

SAMPLE_HEADER = """\
/* sample.h */
#ifndef SAMPLE_H
#define SAMPLE_H

int AddNumbers(int a, int b);   // adds
const char *GetVersionInfo(void);
void Shutdown();

#endif
"""


@pytest.fixture
def sample_image():
    return build_pe(SAMPLE_NAMES)


@pytest.fixture
def sample_dll(tmp_path: Path, sample_image) -> Path:
    return sample_image.save(tmp_path / "sample.dll")


@pytest.fixture
def sample_header(tmp_path: Path) -> Path:
    path = tmp_path / "sample.h"
    path.write_text(SAMPLE_HEADER, encoding="utf-8")
    return path


@pytest.fixture
def quiet_logger() -> OrdinalLogger:
    return OrdinalLogger("test", log_level="DEBUG", console_output=False)


@pytest.fixture
def engine(quiet_logger) -> OrdinalEngine:
    return OrdinalEngine(config=OrdinalConfig(), logger=quiet_logger)
