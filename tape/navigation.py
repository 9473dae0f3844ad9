#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带文件导航
Tape File Navigation

驱动器只能按文件标记前后移动，没有"上一个文件"和"跳到第 N 个文件"，
这里用 fsf / bsf / bsfm / rewind 组合出这些操作。
"""

import logging
from typing import List, Optional

from tape.command_runner import Deadline
from tape.errors import CommandFailedError, CountFilesError, LtoDriveError, PrevFileError
from tape.lto_drive import LtoTapeDrive

logger = logging.getLogger(__name__)


class TapeNavigator:
    """磁带文件导航"""

    def __init__(self, drive: LtoTapeDrive):
        self.drive = drive

    async def next_file(self, deadline: Optional[Deadline] = None) -> None:
        await self.drive.fsf(1, deadline=deadline)

    async def prev_file(self, deadline: Optional[Deadline] = None) -> None:
        """回到上一个文件的开头

        在第 0 或第 1 个文件时直接倒带。否则先 bsf 1（停在前一个文件标记之前），
        再 bsfm 1 回到上一个文件的开头。所有步骤共享同一个截止时间。
        """
        try:
            current = await self.drive.get_current_file_number(deadline=deadline)
            if current in (0, 1):
                await self.drive.rewind(deadline=deadline)
                return
            await self.drive.bsf(1, deadline=deadline)
            await self.drive.bsfm(1, deadline=deadline)
        except LtoDriveError as e:
            raise PrevFileError() from e
        logger.debug("已回到文件 %d", current - 1)

    async def count_files(self, timeout: Optional[float]) -> int:
        """统计磁带上的文件数，完成后倒带

        需要遍历整盘磁带，timeout 覆盖整个过程而不是每一步。
        只有 mt fsf 本身返回非零才视为到达数据末尾；介质检查失败、超时、
        启动失败等其他中断都会抛出 CountFilesError。无论结果如何都会再倒带一次，
        开始或最后的倒带失败同样抛出 CountFilesError。
        已统计的数量通过其 count 属性返回。
        """
        deadline = Deadline.after(timeout)
        errors: List[LtoDriveError] = []
        stop_error: Optional[LtoDriveError] = None
        count = 0

        try:
            await self.drive.rewind(deadline=deadline)
        except LtoDriveError as e:
            errors.append(e)
        else:
            while True:
                try:
                    await self.next_file(deadline=deadline)
                except LtoDriveError as e:
                    stop_error = e
                    break
                count += 1
            if self._is_end_of_data(stop_error):
                logger.info("[TAPE] 到达数据末尾（%s），共 %d 个文件", stop_error, count)
            else:
                logger.error("[TAPE] 统计在第 %d 个文件后中断: %s", count, stop_error)
                errors.append(stop_error)

        try:
            await self.drive.rewind(deadline=deadline)
        except LtoDriveError as e:
            if stop_error is not None and stop_error not in errors:
                errors.append(stop_error)
            errors.append(e)

        if errors:
            raise CountFilesError(errors, count=count)
        return count

    def _is_end_of_data(self, error: LtoDriveError) -> bool:
        """mt fsf 越过最后一个文件标记时返回非零"""
        return (isinstance(error, CommandFailedError)
                and error.program == self.drive.mt
                and error.args_list[2:3] == ["fsf"])
