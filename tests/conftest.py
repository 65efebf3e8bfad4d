# Shared pytest fixtures
from __future__ import annotations
import logging
import tempfile
from pathlib import Path

import pytest

from review_prep.logging.init import LOGGER_NAME, reset_logging


def make_csv(rows: list[list[str]], delimiter: str = ",") -> str:
    """Join rows into delimited text, quoting cells that need it."""
    def cell(value: str) -> str:
        if any(ch in value for ch in (delimiter, '"', "\n", "\r")):
            return '"' + value.replace('"', '""') + '"'
        return value
    return "\n".join(delimiter.join(cell(v) for v in row) for row in rows) + "\n"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
    # capsys のストリームを掴んだハンドラを残さない
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture()
def content_rows() -> list[list[str]]:
    return [
        ["序号", "内容"],
        ["1", "用户评价文本：商品很好"],
        ["2", "  商品很好  "],
        ["3", ""],
        ["4", "物流\t太慢\n了"],
    ]


@pytest.fixture()
def gbk_content_buffer(content_rows) -> bytes:
    return make_csv(content_rows).encode("gbk")


@pytest.fixture()
def risk_rows() -> list[list[str]]:
    return [
        ["内容", "文心安全算子V2-风险得分", "文心安全算子V2-一级风险类型"],
        ["用户评价文本:太差了", "0.9", "辱骂"],
        ["还行", "0.00001", "无风险"],
        ["骗子商家", "abc", "欺诈"],
        ["垃圾", "", "辱骂"],
        ["假货", "0.6", "欺诈"],
    ]


@pytest.fixture()
def gbk_risk_buffer(risk_rows) -> bytes:
    return make_csv(risk_rows).encode("gbk")


@pytest.fixture()
def utf8_risk_buffer(risk_rows) -> bytes:
    return make_csv(risk_rows).encode("utf-8")


@pytest.fixture()
def sample_config_yaml() -> str:
    return """strategy: service_safe_cate_v2
threshold: 0.5
output_directory: ./out
report_example_limit: 3
error_log_directory: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "prep.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def csv_bytes():
    """Factory: rows -> encoded delimited text."""
    def _build(rows: list[list[str]], encoding: str = "utf-8", delimiter: str = ",") -> bytes:
        return make_csv(rows, delimiter).encode(encoding)
    return _build
