#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具输出字段提取
Text Field Extractor

mt / sg_logs / sg_read_attr 的输出格式各不相同：
- sg_logs / sg_read_attr 使用 "标签: 值 [单位...]"，有符号整数或字符串
- mt 使用 "标签=值"，无符号整数
所有函数只处理单行文本，值之后的附加说明会被忽略，数字中的千位分隔符会被去掉。
"""

from typing import Tuple

from tape.errors import FieldMissingError, FieldParseError


def _split_value(line: str, delimiter: str) -> Tuple[bool, str]:
    """按最后一个分隔符切分，返回 (是否存在分隔符, 去除空白的剩余部分)"""
    line = line.strip()
    head, sep, tail = line.rpartition(delimiter)
    if not sep:
        return False, line
    return True, tail.strip()


def _first_token(value: str) -> str:
    if not value:
        raise FieldMissingError()
    return value.split()[0]


def _parse_number(token: str, base: int, signed: bool) -> int:
    token = token.replace(",", "")
    if not token:
        raise FieldMissingError()
    if not signed and token[0] in "+-":
        raise FieldParseError(f"invalid unsigned value: {token!r}")
    try:
        return int(token, base)
    except ValueError as e:
        raise FieldParseError(f"invalid numeric value: {token!r}") from e


def extract_colon_int(line: str, base: int = 0) -> int:
    """解析 "标签: 1,234 MiB" 形式的有符号整数

    没有冒号时整行都作为值处理。
    base=0 时按 int() 的规则识别 0x / 0o / 0b 前缀；
    带前导零的十进制（如 "010"）不会当作八进制，而是解析失败。
    """
    _, value = _split_value(line, ":")
    return _parse_number(_first_token(value), base, signed=True)


def extract_colon_str(line: str) -> str:
    """解析 "标签: 值" 形式的字符串，行内必须包含冒号"""
    found, value = _split_value(line, ":")
    if not found:
        raise FieldMissingError()
    return _first_token(value)


def extract_equals_uint(line: str, base: int = 0) -> int:
    """解析 "File number=3" 形式的无符号整数"""
    _, value = _split_value(line, "=")
    return _parse_number(_first_token(value), base, signed=False)
