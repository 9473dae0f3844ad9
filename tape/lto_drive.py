#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
LTO 不倒带磁带驱动器
LTO No-Rewind Tape Drive

通过 mt（定位/状态）、sg_logs（日志页）和 sg_read_attr（MAM 属性）
三个外部工具控制驱动器，并把它们的文本输出解析为结构化数据。
"""

import logging
import os
from typing import List, Optional

from config.settings import Settings, get_settings
from tape.capacity_log import UNKNOWN_CAPACITY, CapacityLog, MediumType
from tape.command_runner import CommandRunner, Deadline
from tape.device_naming import check_no_rewind
from tape.errors import (
    AttributeParseError,
    CapacityFieldError,
    CapacityLogIncompleteError,
    CommandExecutionError,
    DeviceCheckError,
    DeviceStatError,
    FieldParseError,
    LtoDriveError,
    MediumSerialNumberError,
    MtExecError,
    MtFieldsMissingError,
    MtOutputParseError,
    NoDataCartridgeError,
    SgLogsExecError,
    SgReadAttrExecError,
    SomeCapacityFieldsMissing,
    UtilityDiscoveryError,
    UtilityNotFoundError,
)
from tape.text_fields import extract_colon_int, extract_colon_str, extract_equals_uint
from tape.utility_locator import discover_utility

logger = logging.getLogger(__name__)

# MAM 属性 ID
ATTR_MEDIUM_SERIAL_NUMBER = "0x0401"
ATTR_MEDIUM_TYPE = "0x0408"

# 磁带容量日志页
CAPACITY_LOG_PAGE = "0x31"

# 日志页标签 -> CapacityLog 字段
CAPACITY_LABELS = (
    ("Main partition remaining capacity", "main_partition_remaining"),
    ("Alternate partition remaining capacity", "alternate_partition_remaining"),
    ("Main partition maximum capacity", "main_partition_max"),
    ("Alternate partition maximum capacity", "alternate_partition_max"),
)


def _parse_capacity_line(line: str, label: str, field_name: str) -> int:
    try:
        return extract_colon_int(line)
    except FieldParseError as e:
        raise CapacityFieldError(field_name, label) from e


class LtoTapeDrive:
    """LTO 不倒带磁带驱动器

    除了手动覆盖三个工具路径外不保存任何会话状态，
    位置和介质状态每次都重新向驱动器查询。
    """

    def __init__(self, device_file: str, mt: str = "", sg_logs: str = "",
                 sg_read_attr: str = "", runner: Optional[CommandRunner] = None):
        self._device_file = device_file
        self.mt = mt
        self.sg_logs = sg_logs
        self.sg_read_attr = sg_read_attr
        self.runner = runner or CommandRunner()

    @property
    def device_file(self) -> str:
        return self._device_file

    def __repr__(self) -> str:
        return (f"LtoTapeDrive(device_file={self._device_file!r}, mt={self.mt!r}, "
                f"sg_logs={self.sg_logs!r}, sg_read_attr={self.sg_read_attr!r})")

    @classmethod
    async def open(cls, device_file: str, *, settings: Optional[Settings] = None,
                   runner: Optional[CommandRunner] = None,
                   system: Optional[str] = None) -> "LtoTapeDrive":
        """创建驱动器对象

        依次检查设备文件是否存在、是否符合当前平台的不倒带命名规则，
        然后分别发现 mt / sg_logs / sg_read_attr。
        工具发现失败不会中断创建：所有失败合并为 UtilityDiscoveryError，
        其 drive 属性仍是可用的驱动器对象，调用方可以手动设置工具路径。

        Raises:
            DeviceStatError: 设备文件不存在
            UnsupportedPlatformError: 不支持的平台
            NoRewindRequiredError: 不是不倒带设备
            UtilityDiscoveryError: 至少一个工具未找到
        """
        settings = settings or get_settings()
        runner = runner or CommandRunner(trace=settings.TRACE_TAPE_COMMANDS)
        drive = cls(device_file, runner=runner)

        try:
            os.stat(device_file)
        except OSError as e:
            raise DeviceStatError(f"can not stat specified device file: {device_file}") from e
        check_no_rewind(device_file, system)

        utilities = (
            ("mt", settings.MT_PATH, settings.MT_CANDIDATES),
            ("sg_logs", settings.SG_LOGS_PATH, settings.SG_LOGS_CANDIDATES),
            ("sg_read_attr", settings.SG_READ_ATTR_PATH, settings.SG_READ_ATTR_CANDIDATES),
        )
        errors: List[LtoDriveError] = []
        for name, override, candidates in utilities:
            if override:
                logger.info("使用配置的 %s: %s", name, override)
                setattr(drive, name, override)
                continue
            try:
                path = await discover_utility(
                    name, candidates,
                    probe_arg=settings.UTILS_PROBE_ARG,
                    timeout=settings.UTILS_DISCOVER_TIMEOUT,
                    runner=runner,
                )
            except UtilityNotFoundError as e:
                logger.warning("未找到 %s，候选路径: %s", name, ", ".join(candidates))
                errors.append(e)
                continue
            setattr(drive, name, path)

        if errors:
            raise UtilityDiscoveryError(errors, drive=drive)
        logger.info("磁带驱动器初始化完成: %r", drive)
        return drive

    async def check_device(self, deadline: Optional[Deadline] = None) -> None:
        """执行 mt status，只说明驱动器有响应"""
        try:
            await self.exec_mt("status", deadline=deadline)
        except LtoDriveError as e:
            raise DeviceCheckError() from e

    # ---- MAM 属性 ----

    async def read_attribute(self, attr_id: str, deadline: Optional[Deadline] = None) -> str:
        """读取 MAM 属性值，ID 形如 0x0408 或 0408h"""
        try:
            output = await self.runner.run(
                self.sg_read_attr, ["-f", attr_id, self._device_file], deadline=deadline
            )
        except CommandExecutionError as e:
            raise SgReadAttrExecError() from e
        return extract_colon_str(output.decode(errors="replace"))

    async def has_data_cartridge(self, deadline: Optional[Deadline] = None) -> bool:
        """介质类型（0408h）为 0 时是数据磁带"""
        value = await self.read_attribute(ATTR_MEDIUM_TYPE, deadline=deadline)
        try:
            code = int(value, 0)
        except ValueError as e:
            raise AttributeParseError(f"can not parse output of sg_read_attr: {value!r}") from e
        return code == MediumType.DATA_CARTRIDGE.value

    async def require_data_cartridge(self, deadline: Optional[Deadline] = None) -> None:
        """介质检查：没有可读的数据磁带时不发出任何 mt 命令"""
        try:
            has_data_cartridge = await self.has_data_cartridge(deadline=deadline)
        except LtoDriveError as e:
            raise NoDataCartridgeError() from e
        if not has_data_cartridge:
            raise NoDataCartridgeError()

    async def try_read_attribute(self, deadline: Optional[Deadline] = None) -> None:
        """确认 MAM 属性可读（驱动器已就绪）"""
        await self.has_data_cartridge(deadline=deadline)

    async def get_medium_serial_number(self, deadline: Optional[Deadline] = None) -> str:
        """读取介质序列号（0401h）"""
        try:
            await self.try_read_attribute(deadline=deadline)
            return await self.read_attribute(ATTR_MEDIUM_SERIAL_NUMBER, deadline=deadline)
        except LtoDriveError as e:
            raise MediumSerialNumberError() from e

    # ---- 日志页 ----

    async def get_capacity_log(self, deadline: Optional[Deadline] = None) -> CapacityLog:
        """读取磁带容量日志页（31h）

        未识别的行会被忽略。任何字段无法解析时抛出 CapacityLogIncompleteError，
        已解析的部分通过其 capacity_log 属性返回。
        """
        try:
            output = await self.runner.run(
                self.sg_logs, ["-p", CAPACITY_LOG_PAGE, self._device_file], deadline=deadline
            )
        except CommandExecutionError as e:
            raise SgLogsExecError() from e

        values = {}
        errors: List[LtoDriveError] = []
        for raw in output.decode(errors="replace").splitlines():
            line = raw.strip()
            for label, field_name in CAPACITY_LABELS:
                if line.startswith(label):
                    try:
                        values[field_name] = _parse_capacity_line(line, label, field_name)
                    except CapacityFieldError as e:
                        values[field_name] = UNKNOWN_CAPACITY
                        errors.append(e)
                    break

        capacity_log = CapacityLog(**values)
        missing = capacity_log.missing_fields()
        if missing:
            errors.append(SomeCapacityFieldsMissing(missing))
        if errors:
            logger.warning("容量日志不完整，缺少字段: %s", ", ".join(missing))
            raise CapacityLogIncompleteError(errors, capacity_log=capacity_log)
        return capacity_log

    # ---- mt 命令 ----

    async def exec_mt(self, command: str, *counts: int,
                      deadline: Optional[Deadline] = None) -> bytes:
        """先确认有数据磁带，再执行 mt -f <device> <command> [count...]"""
        for count in counts:
            if count < 0:
                raise ValueError(f"mt count must not be negative: {count}")
        await self.require_data_cartridge(deadline=deadline)
        args = ["-f", self._device_file, command] + [str(c) for c in counts]
        return await self.runner.run(self.mt, args, deadline=deadline)

    async def rewind(self, deadline: Optional[Deadline] = None) -> None:
        logger.info("[TAPE] 倒带: %s", self._device_file)
        await self.exec_mt("rewind", deadline=deadline)

    async def fsf(self, count: int = 1, deadline: Optional[Deadline] = None) -> None:
        """向前跳过 count 个文件标记"""
        await self.exec_mt("fsf", count, deadline=deadline)

    async def bsf(self, count: int = 1, deadline: Optional[Deadline] = None) -> None:
        """向后跳过 count 个文件标记，停在文件标记之前"""
        await self.exec_mt("bsf", count, deadline=deadline)

    async def bsfm(self, count: int = 1, deadline: Optional[Deadline] = None) -> None:
        """向后跳过 count 个文件标记后再向前越过一个，停在下一个文件的开头"""
        await self.exec_mt("bsfm", count, deadline=deadline)

    async def weof(self, count: int = 1, deadline: Optional[Deadline] = None) -> None:
        logger.info("[TAPE] 写入 %d 个文件标记: %s", count, self._device_file)
        await self.exec_mt("weof", count, deadline=deadline)

    async def erase(self, deadline: Optional[Deadline] = None) -> None:
        logger.warning("[TAPE] 擦除磁带: %s", self._device_file)
        await self.exec_mt("erase", deadline=deadline)

    async def eject(self, deadline: Optional[Deadline] = None) -> None:
        logger.info("[TAPE] 弹出磁带: %s", self._device_file)
        await self.exec_mt("eject", deadline=deadline)

    async def get_current_file_number(self, deadline: Optional[Deadline] = None) -> int:
        """当前所在的文件号（不是文件总数）"""
        try:
            output = await self.exec_mt("status", deadline=deadline)
        except LtoDriveError as e:
            raise MtExecError() from e

        for line in output.decode(errors="replace").splitlines():
            for part in line.split(","):
                part = part.strip()
                if part.startswith("File number"):
                    try:
                        return extract_equals_uint(part)
                    except FieldParseError as e:
                        raise MtOutputParseError() from e
        raise MtFieldsMissingError()
