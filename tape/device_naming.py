#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
不倒带磁带设备命名规则
No-Rewind Device Naming Rules
"""

import os
import platform
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from tape.errors import NoRewindRequiredError, UnsupportedPlatformError


class MatchKind(Enum):
    """命名规则匹配方式"""
    PREFIX = "prefix"
    SUFFIX = "suffix"


@dataclass(frozen=True)
class NamingRule:
    """设备文件名（不含目录）的匹配规则"""

    kind: MatchKind
    text: str

    def matches(self, device_file: str) -> bool:
        name = os.path.basename(device_file)
        if self.kind is MatchKind.PREFIX:
            return name.startswith(self.text)
        return name.endswith(self.text)


# 键为 platform.system() 的返回值
NAMING_RULES: Dict[str, NamingRule] = {
    "Linux": NamingRule(MatchKind.PREFIX, "nst"),      # /dev/nst0
    "FreeBSD": NamingRule(MatchKind.PREFIX, "nsa"),    # /dev/nsa0
    "NetBSD": NamingRule(MatchKind.PREFIX, "nsa"),
    "OpenBSD": NamingRule(MatchKind.PREFIX, "nsa"),
    "SunOS": NamingRule(MatchKind.SUFFIX, "n"),        # /dev/rmt/0n
    "AIX": NamingRule(MatchKind.SUFFIX, ".1"),         # /dev/rmt0.1
}


def naming_rule_for(system: Optional[str] = None) -> NamingRule:
    system = system or platform.system()
    try:
        return NAMING_RULES[system]
    except KeyError:
        raise UnsupportedPlatformError(f"this os is not supported: {system}") from None


def check_no_rewind(device_file: str, system: Optional[str] = None) -> None:
    """检查设备文件是否为当前平台的不倒带设备"""
    rule = naming_rule_for(system)
    if not rule.matches(device_file):
        raise NoRewindRequiredError(
            f"a no rewind tape device is required: {device_file} "
            f"(expected name {rule.kind.value} {rule.text!r})"
        )
