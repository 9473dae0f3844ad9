#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带容量日志与介质类型
Tape Capacity Log and Medium Type
"""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict, List

# 容量未知
UNKNOWN_CAPACITY = -1

MIB = 1048576


class MediumType(Enum):
    """MAM 属性 0408h（介质类型）"""
    DATA_CARTRIDGE = 0       # 数据磁带
    CLEANING_CARTRIDGE = 1   # 清洗带


@dataclass(frozen=True)
class CapacityLog:
    """磁带容量日志页（31h），单位 MiB"""

    main_partition_remaining: int = UNKNOWN_CAPACITY
    alternate_partition_remaining: int = UNKNOWN_CAPACITY
    main_partition_max: int = UNKNOWN_CAPACITY
    alternate_partition_max: int = UNKNOWN_CAPACITY

    def missing_fields(self) -> List[str]:
        """仍为未知值的字段名"""
        return [f.name for f in fields(self) if getattr(self, f.name) == UNKNOWN_CAPACITY]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def to_bytes(self, field_name: str) -> int:
        """字段换算为字节，未知时返回 UNKNOWN_CAPACITY"""
        value = getattr(self, field_name)
        if value == UNKNOWN_CAPACITY:
            return UNKNOWN_CAPACITY
        return value * MIB

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
