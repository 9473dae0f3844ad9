#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
LTO 磁带驱动器控制 - 命令行入口
LTO Tape Drive Control - Command Line Entry Point

示例: ltoctl -d /dev/nst0 capacity
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from config.settings import get_settings
from tape.command_runner import Deadline
from tape.errors import (
    CapacityLogIncompleteError,
    CountFilesError,
    LtoDriveError,
    UtilityDiscoveryError,
    describe_error,
)
from tape.lto_drive import LtoTapeDrive
from tape.navigation import TapeNavigator
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="ltoctl", description="LTO 不倒带磁带驱动器控制")
    parser.add_argument("-d", "--device", default=settings.TAPE_DEVICE_PATH,
                        help=f"不倒带设备文件（默认 {settings.TAPE_DEVICE_PATH}）")
    parser.add_argument("--trace", action="store_true", default=settings.TRACE_TAPE_COMMANDS,
                        help="记录每条磁带命令及其原始输出")
    parser.add_argument("--timeout", type=float, default=settings.TAPE_COMMAND_TIMEOUT,
                        help="整个操作的时限（秒）")
    parser.add_argument("--log-level", default=None, help="日志级别（默认取 LOG_LEVEL）")

    sub = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("status", "检查驱动器是否响应"),
        ("medium", "是否装有数据磁带"),
        ("serial", "介质序列号"),
        ("capacity", "容量日志（MiB）"),
        ("fileno", "当前文件号"),
        ("rewind", "倒带"),
        ("next", "前进到下一个文件"),
        ("prev", "回到上一个文件"),
        ("count", "统计文件数（遍历整盘磁带）"),
        ("erase", "擦除磁带"),
        ("eject", "弹出磁带"),
    ):
        sub.add_parser(name, help=help_text)
    for name, help_text in (
        ("fsf", "向前跳过 N 个文件标记"),
        ("bsf", "向后跳过 N 个文件标记"),
        ("bsfm", "向后跳过 N 个文件标记后再前进一个"),
        ("weof", "写入 N 个文件标记"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("count", type=int, nargs="?", default=1)
    return parser


async def run_command(drive: LtoTapeDrive, args: argparse.Namespace) -> int:
    """执行单个子命令，返回退出码"""
    settings = get_settings()
    navigator = TapeNavigator(drive)
    deadline = Deadline.after(args.timeout)
    command = args.command

    if command == "status":
        await drive.check_device(deadline=deadline)
        print("ok")
    elif command == "medium":
        print("data cartridge" if await drive.has_data_cartridge(deadline=deadline) else "no data cartridge")
    elif command == "serial":
        print(await drive.get_medium_serial_number(deadline=deadline))
    elif command == "capacity":
        try:
            capacity_log = await drive.get_capacity_log(deadline=deadline)
        except CapacityLogIncompleteError as e:
            print(json.dumps(e.capacity_log.to_dict(), indent=2))
            raise
        print(json.dumps(capacity_log.to_dict(), indent=2))
    elif command == "fileno":
        print(await drive.get_current_file_number(deadline=deadline))
    elif command == "rewind":
        await drive.rewind(deadline=deadline)
    elif command == "next":
        await navigator.next_file(deadline=deadline)
    elif command == "prev":
        await navigator.prev_file(deadline=deadline)
    elif command == "count":
        timeout = args.timeout if args.timeout is not None else settings.COUNT_FILES_TIMEOUT
        try:
            print(await navigator.count_files(timeout))
        except CountFilesError as e:
            print(e.count)
            raise
    elif command == "fsf":
        await drive.fsf(args.count, deadline=deadline)
    elif command == "bsf":
        await drive.bsf(args.count, deadline=deadline)
    elif command == "bsfm":
        await drive.bsfm(args.count, deadline=deadline)
    elif command == "weof":
        await drive.weof(args.count, deadline=deadline)
    elif command == "erase":
        await drive.erase(deadline=deadline)
    elif command == "eject":
        await drive.eject(deadline=deadline)
    return 0


async def async_main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings, level=args.log_level)

    if args.trace != settings.TRACE_TAPE_COMMANDS:
        settings = settings.model_copy(update={"TRACE_TAPE_COMMANDS": args.trace})

    try:
        try:
            drive = await LtoTapeDrive.open(args.device, settings=settings)
        except UtilityDiscoveryError as e:
            # 部分工具缺失时仍继续，用到缺失工具的命令会在执行时报错
            logger.warning(describe_error(e))
            drive = e.drive
        return await run_command(drive, args)
    except LtoDriveError as e:
        logger.error(f"{args.command} 失败: {describe_error(e)}", exc_info=settings.DEBUG)
        return 1


def main() -> None:
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
