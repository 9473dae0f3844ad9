#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pytest配置文件
pytest Configuration
"""

import asyncio
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tape.command_runner import Deadline
from tape.errors import CommandFailedError, CommandTimeoutError
from tape.lto_drive import LtoTapeDrive

DEVICE = "/dev/nst0"

CAPACITY_REPORT = """\
    IBM       ULTRIUM-HH8       K4K1
Tape capacity log page (LTO-5 and LTO-6 specific) [0x31]
  Main partition remaining capacity (in MiB): 11,718,554
  Alternate partition remaining capacity (in MiB): 0
  Main partition maximum capacity (in MiB): 11,718,554
  Alternate partition maximum capacity (in MiB): 0
"""


class FakeTape:
    """模拟 mt / sg_logs / sg_read_attr，替代 CommandRunner

    files 为磁带上的文件标记数，file_number 为当前所在文件。
    fail_after 指定某个 mt 子命令成功多少次之后开始失败。
    fail_on_call 指定某个程序的第几次调用（从 1 开始）失败一次。
    """

    def __init__(self, files: int = 0, file_number: int = 0, medium_type: Optional[str] = "0",
                 serial: str = "K10001L8", capacity_report: str = CAPACITY_REPORT,
                 delay: float = 0.0):
        self.files = files
        self.file_number = file_number
        self.medium_type = medium_type
        self.serial = serial
        self.capacity_report = capacity_report
        self.status_report: Optional[str] = None
        self.delay = delay
        self.fail_after: Dict[str, int] = {}
        self.fail_programs: Dict[str, int] = {}
        self.fail_on_call: Dict[str, int] = {}
        self.calls: List[tuple] = []
        self.deadlines: List[Optional[Deadline]] = []
        self._succeeded: Dict[str, int] = {}

    @property
    def mt_commands(self) -> List[List[str]]:
        return [args[2:] for program, args in self.calls if program == "mt"]

    async def run(self, program, args=(), deadline=None) -> bytes:
        args = [str(a) for a in args]
        self.calls.append((program, args))
        self.deadlines.append(deadline)
        if deadline is not None and deadline.expired:
            raise CommandTimeoutError(program, args)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_on_call.get(program) == sum(1 for p, _ in self.calls if p == program):
            raise CommandFailedError(program, args, 1, b"error")
        if program in self.fail_programs:
            raise CommandFailedError(program, args, self.fail_programs[program], b"error")
        if program == "mt":
            return self._mt(args)
        if program == "sg_read_attr":
            return self._read_attr(args[1])
        if program == "sg_logs":
            return self.capacity_report.encode()
        raise AssertionError(f"unexpected program {program}")

    def _fail(self, args, message: str):
        raise CommandFailedError("mt", args, 2, f"{DEVICE}: {message}".encode())

    def _mt(self, args) -> bytes:
        command = args[2]
        count = int(args[3]) if len(args) > 3 else 1
        limit = self.fail_after.get(command)
        if limit is not None and self._succeeded.get(command, 0) >= limit:
            self._fail(args, "Input/output error")
        if command == "status":
            if self.status_report is not None:
                return self.status_report.encode()
            return (
                "SCSI 2 tape drive:\n"
                f"File number={self.file_number}, block number=0, partition=0.\n"
                "Tape block size 0 bytes. Density code 0x5e (LTO-8).\n"
                "Soft error count since last status=0\n"
                "General status bits on (81010000):\n"
                " EOF ONLINE IM_REP_EN\n"
            ).encode()
        if command == "rewind":
            self.file_number = 0
        elif command == "fsf":
            if self.file_number + count > self.files:
                self._fail(args, "Input/output error")
            self.file_number += count
        elif command == "bsf":
            if self.file_number - count < 0:
                self._fail(args, "Input/output error")
            self.file_number -= count
        elif command == "bsfm":
            if self.file_number - count < 0:
                self._fail(args, "Input/output error")
            self.file_number = self.file_number - count + 1
        elif command == "weof":
            self.file_number += count
            self.files = max(self.files, self.file_number)
        self._succeeded[command] = self._succeeded.get(command, 0) + 1
        return b""

    def _read_attr(self, attr_id: str) -> bytes:
        if attr_id == "0x0408":
            if self.medium_type is None:
                return b""
            return f"Medium type: {self.medium_type}\n".encode()
        if attr_id == "0x0401":
            return f"Medium serial number: {self.serial}\n".encode()
        raise AssertionError(f"unexpected attribute {attr_id}")


@pytest.fixture
def fake_tape():
    return FakeTape(files=5)


@pytest.fixture
def drive(fake_tape):
    return LtoTapeDrive(DEVICE, mt="mt", sg_logs="sg_logs", sg_read_attr="sg_read_attr",
                        runner=fake_tape)


@pytest.fixture(autouse=True)
def setup_test_environment():
    """设置测试环境"""
    os.environ['LOG_LEVEL'] = 'DEBUG'

    yield
