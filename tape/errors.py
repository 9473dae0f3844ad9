#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带驱动器错误定义
Tape Drive Error Definitions
"""

from typing import Iterable, Optional, Sequence, Tuple


class LtoDriveError(Exception):
    """所有磁带驱动器错误的基类"""

    default_message = "lto drive error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


# 环境类错误
class DeviceEnvironmentError(LtoDriveError):
    default_message = "device environment error"


class DeviceStatError(DeviceEnvironmentError):
    default_message = "can not stat specified device file"


class NoRewindRequiredError(DeviceEnvironmentError):
    default_message = "a no rewind tape device is required"


class UnsupportedPlatformError(DeviceEnvironmentError):
    default_message = "this os is not supported"


class UtilityNotFoundError(DeviceEnvironmentError):
    """候选路径中没有可执行的工具"""

    def __init__(self, utility: str, candidates: Sequence[str] = ()):
        self.utility = utility
        self.candidates = tuple(candidates)
        super().__init__(f"discovery failed for utility {utility}")


# 执行类错误
class CommandExecutionError(LtoDriveError):
    """外部命令执行失败"""

    def __init__(self, program: str, args: Sequence[str] = (), message: Optional[str] = None):
        self.program = program
        self.args_list = list(args)
        super().__init__(message or f"failed to run {self.command_line}")

    @property
    def command_line(self) -> str:
        return " ".join([self.program] + self.args_list)


class CommandLaunchError(CommandExecutionError):
    """程序无法启动（不存在或无执行权限）"""

    def __init__(self, program: str, args: Sequence[str] = (), reason: str = ""):
        super().__init__(program, args, f"can not launch {program}: {reason}" if reason else None)


class CommandFailedError(CommandExecutionError):
    """程序已运行但返回非零退出码"""

    def __init__(self, program: str, args: Sequence[str], returncode: int, output: bytes = b""):
        self.returncode = returncode
        self.output = output
        super().__init__(program, args, f"{program} exited with status {returncode}")


class CommandTimeoutError(CommandExecutionError):
    """截止时间已到，命令被终止

    launched 为 False 表示启动前截止时间就已到，程序没有运行过。
    """

    def __init__(self, program: str, args: Sequence[str] = (), output: bytes = b"",
                 launched: bool = True):
        self.output = output
        self.launched = launched
        super().__init__(program, args, f"{program} timed out")


class ToolExecError(LtoDriveError):
    default_message = "failed to get cmd output"


class SgLogsExecError(ToolExecError):
    default_message = "failed to get sg_logs cmd output"


class SgReadAttrExecError(ToolExecError):
    default_message = "failed to get sg_read_attr cmd output"


class MtExecError(ToolExecError):
    default_message = "failed to get mt cmd output"


# 解析类错误
class FieldParseError(LtoDriveError):
    default_message = "can not parse field"


class FieldMissingError(FieldParseError):
    default_message = "field missing"


class AttributeParseError(FieldParseError):
    default_message = "can not parse output of sg_read_attr"


class MtOutputParseError(FieldParseError):
    default_message = "can not parse output of mt"


class MtFieldsMissingError(FieldMissingError):
    default_message = "some mt related fields missing"


class CapacityFieldError(FieldParseError):
    """单个容量字段解析失败"""

    def __init__(self, field_name: str, label: str):
        self.field_name = field_name
        self.label = label
        super().__init__(f"can not parse {label.lower()}")


class SomeCapacityFieldsMissing(FieldMissingError):
    def __init__(self, missing: Iterable[str] = ()):
        self.missing = tuple(missing)
        message = "some capacity log fields missing"
        if self.missing:
            message += ": " + ", ".join(self.missing)
        super().__init__(message)


# 前置条件错误
class NoDataCartridgeError(LtoDriveError):
    default_message = "no data cartridge or not ready yet"


# 语义包装错误
class DeviceCheckError(LtoDriveError):
    default_message = "device check failed"


class MediumSerialNumberError(LtoDriveError):
    default_message = "can not get medium serial number"


class PrevFileError(LtoDriveError):
    default_message = "can not go to previous file"


# 组合错误
class CompositeError(LtoDriveError):
    """多个相互独立的失败合并为一个错误，按发生顺序保存"""

    default_message = "multiple errors"

    def __init__(self, errors: Iterable[BaseException], message: Optional[str] = None):
        self.errors: Tuple[BaseException, ...] = tuple(errors)
        super().__init__(message)

    def __str__(self) -> str:
        head = super().__str__()
        if not self.errors:
            return head
        return head + ": " + "; ".join(str(e) for e in self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)


class UtilityDiscoveryError(CompositeError):
    """部分工具未找到，drive 仍可用（可手动指定工具路径）"""

    default_message = "some tape utilities were not discovered"

    def __init__(self, errors: Iterable[BaseException], drive=None):
        self.drive = drive
        super().__init__(errors)


class CapacityLogIncompleteError(CompositeError):
    default_message = "capacity log incomplete"

    def __init__(self, errors: Iterable[BaseException], capacity_log=None):
        self.capacity_log = capacity_log
        super().__init__(errors)


class CountFilesError(CompositeError):
    default_message = "can not count files"

    def __init__(self, errors: Iterable[BaseException], count: int = 0):
        self.count = count
        super().__init__(errors)


def describe_error(error: BaseException) -> str:
    """按因果链展开错误信息，例如 "can not go to previous file: failed to get mt cmd output: ..." """
    parts = []
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__
    return ": ".join(parts)
