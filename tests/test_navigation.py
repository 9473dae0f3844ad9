#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带文件导航测试
Tape Navigation Tests
"""

import pytest

from conftest import DEVICE, FakeTape
from tape.command_runner import Deadline
from tape.errors import (
    CommandFailedError,
    CountFilesError,
    MtExecError,
    NoDataCartridgeError,
    PrevFileError,
)
from tape.lto_drive import LtoTapeDrive
from tape.navigation import TapeNavigator


def make_navigator(fake_tape: FakeTape) -> TapeNavigator:
    drive = LtoTapeDrive(DEVICE, mt="mt", sg_logs="sg_logs", sg_read_attr="sg_read_attr",
                         runner=fake_tape)
    return TapeNavigator(drive)


class TestNextFile:
    """下一个文件"""

    @pytest.mark.asyncio
    async def test_next_file(self, fake_tape):
        navigator = make_navigator(fake_tape)
        await navigator.next_file()
        assert fake_tape.file_number == 1
        assert fake_tape.mt_commands == [["fsf", "1"]]

    @pytest.mark.asyncio
    async def test_next_file_at_end_of_data(self):
        fake_tape = FakeTape(files=2, file_number=2)
        with pytest.raises(CommandFailedError):
            await make_navigator(fake_tape).next_file()


class TestPrevFile:
    """上一个文件"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [0, 1])
    async def test_rewinds_at_first_file(self, start):
        fake_tape = FakeTape(files=5, file_number=start)
        navigator = make_navigator(fake_tape)
        await navigator.prev_file()
        assert fake_tape.file_number == 0
        assert fake_tape.mt_commands == [["status"], ["rewind"]]

    @pytest.mark.asyncio
    async def test_repeated_calls_are_idempotent(self):
        fake_tape = FakeTape(files=5, file_number=1)
        navigator = make_navigator(fake_tape)
        for _ in range(3):
            await navigator.prev_file()
            assert fake_tape.file_number == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start", [2, 3, 5])
    async def test_steps_back_one_file(self, start):
        fake_tape = FakeTape(files=5, file_number=start)
        navigator = make_navigator(fake_tape)
        await navigator.prev_file()
        assert fake_tape.file_number == start - 1
        assert fake_tape.mt_commands == [["status"], ["bsf", "1"], ["bsfm", "1"]]

    @pytest.mark.asyncio
    async def test_walk_back_to_start(self):
        fake_tape = FakeTape(files=5, file_number=5)
        navigator = make_navigator(fake_tape)
        positions = []
        for _ in range(6):
            await navigator.prev_file()
            positions.append(fake_tape.file_number)
        assert positions == [4, 3, 2, 1, 0, 0]

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self):
        """测试子步骤失败包装为 PrevFileError"""
        fake_tape = FakeTape(files=5, file_number=3)
        fake_tape.fail_after["bsfm"] = 0
        with pytest.raises(PrevFileError) as exc_info:
            await make_navigator(fake_tape).prev_file()
        assert isinstance(exc_info.value.__cause__, CommandFailedError)

    @pytest.mark.asyncio
    async def test_status_failure_is_wrapped(self):
        fake_tape = FakeTape(files=5, file_number=3)
        fake_tape.fail_after["status"] = 0
        with pytest.raises(PrevFileError) as exc_info:
            await make_navigator(fake_tape).prev_file()
        assert isinstance(exc_info.value.__cause__, MtExecError)
        assert fake_tape.mt_commands == [["status"]]

    @pytest.mark.asyncio
    async def test_shares_one_deadline(self):
        """测试所有子步骤共享同一个截止时间"""
        fake_tape = FakeTape(files=5, file_number=3)
        deadline = Deadline.after(60)
        await make_navigator(fake_tape).prev_file(deadline=deadline)
        assert len(fake_tape.deadlines) == 6
        assert all(d is deadline for d in fake_tape.deadlines)


class TestCountFiles:
    """统计文件数"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("files", [0, 1, 7])
    async def test_count(self, files):
        fake_tape = FakeTape(files=files, file_number=min(files, 2))
        count = await make_navigator(fake_tape).count_files(timeout=60)
        assert count == files
        assert fake_tape.file_number == 0
        assert fake_tape.mt_commands[0] == ["rewind"]
        assert fake_tape.mt_commands[-1] == ["rewind"]

    @pytest.mark.asyncio
    async def test_final_rewind_failure_keeps_count(self):
        """测试最后倒带失败时仍返回文件数"""
        fake_tape = FakeTape(files=4)
        fake_tape.fail_after["rewind"] = 1
        with pytest.raises(CountFilesError) as exc_info:
            await make_navigator(fake_tape).count_files(timeout=60)
        error = exc_info.value
        assert error.count == 4
        assert len(error.errors) == 2
        stop_error, rewind_error = error.errors
        assert isinstance(stop_error, CommandFailedError)
        assert stop_error.args_list[2:] == ["fsf", "1"]
        assert isinstance(rewind_error, CommandFailedError)
        assert rewind_error.args_list[2:] == ["rewind"]

    @pytest.mark.asyncio
    async def test_medium_check_failure_mid_traversal(self):
        """测试中途介质检查失败不会被当作数据末尾"""
        fake_tape = FakeTape(files=5)
        # 第 4 次 sg_read_attr 是第 3 次 fsf 之前的介质检查
        fake_tape.fail_on_call["sg_read_attr"] = 4
        with pytest.raises(CountFilesError) as exc_info:
            await make_navigator(fake_tape).count_files(timeout=60)
        error = exc_info.value
        assert error.count == 2
        assert len(error.errors) == 1
        assert isinstance(error.errors[0], NoDataCartridgeError)
        assert fake_tape.file_number == 0

    @pytest.mark.asyncio
    async def test_initial_rewind_failure(self):
        fake_tape = FakeTape(files=4, file_number=2)
        fake_tape.fail_after["rewind"] = 0
        with pytest.raises(CountFilesError) as exc_info:
            await make_navigator(fake_tape).count_files(timeout=60)
        assert exc_info.value.count == 0
        assert len(exc_info.value.errors) == 2
        assert ["fsf", "1"] not in fake_tape.mt_commands

    @pytest.mark.asyncio
    async def test_timeout_covers_whole_traversal(self):
        """测试超时覆盖整个遍历过程，而不是每一步"""
        fake_tape = FakeTape(files=10000, delay=0.01)
        with pytest.raises(CountFilesError) as exc_info:
            await make_navigator(fake_tape).count_files(timeout=0.5)
        assert 0 < exc_info.value.count < 10000
        deadlines = {id(d) for d in fake_tape.deadlines}
        assert len(deadlines) == 1
