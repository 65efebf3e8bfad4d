from __future__ import annotations

import pytest

from review_prep.services.normalizer import REVIEW_PREFIX, normalize_content


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("用户评价文本：商品很好", "商品很好"),
        ("用户评价文本:商品很好", "商品很好"),
        ("用户评价文本商品很好", "商品很好"),
        ("  用户评价文本：  商品很好 ", "商品很好"),
        ("用户评价文本：\n商品很好", "商品很好"),
        ("商品很好", "商品很好"),
        ("用户评价文本：", ""),
    ],
)
def test_prefix_stripped(raw, expected):
    assert normalize_content(raw) == expected


def test_prefix_only_removed_at_start():
    assert normalize_content("我的用户评价文本：好") == "我的用户评价文本：好"


def test_prefix_removed_exactly_once():
    raw = "用户评价文本：第一句 用户评价文本：第二句"
    out = normalize_content(raw)
    assert out == "第一句 用户评价文本：第二句"
    assert out.count(REVIEW_PREFIX) == 1


def test_line_breaks_collapse_to_single_space():
    assert normalize_content("物流\t\t太慢\r\n了") == "物流 太慢 了"
    # 通常スペースは保持
    assert normalize_content("a   b") == "a   b"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "plain text",
        "\t用户评价文本：好评\r\n",
        "用户评价文本：第一句 用户评价文本：第二句",
        "a\t\n\rb",
        "用户评价文本 \t 末尾\n",
        "He said \"hi\"",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize_content(raw)
    assert normalize_content(once) == once


def test_doubled_prefix_needs_two_passes():
    # 先頭の接頭辞は一度だけ除去する
    once = normalize_content("用户评价文本用户评价文本好评")
    assert once == "用户评价文本好评"
    assert normalize_content(once) == "好评"
