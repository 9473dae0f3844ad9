#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
外部命令执行模块
Command Runner Module - 运行磁带工具并获取合并输出（stdout + stderr）
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

from tape.errors import (
    CommandFailedError,
    CommandLaunchError,
    CommandTimeoutError,
)

logger = logging.getLogger(__name__)


class Deadline:
    """绝对截止时间（单调时钟）

    同一个 Deadline 对象会传递给组合操作中的每一步命令，
    因此整个操作共享一个时间预算，而不是每一步重新计时。
    """

    __slots__ = ("at",)

    def __init__(self, at: float):
        self.at = at

    @classmethod
    def after(cls, seconds: Optional[float]) -> Optional["Deadline"]:
        """从现在起 seconds 秒后到期；seconds 为 None 表示不限时"""
        if seconds is None:
            return None
        return cls(time.monotonic() + seconds)

    def remaining(self) -> float:
        return max(0.0, self.at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def __repr__(self) -> str:
        return f"Deadline(remaining={self.remaining():.3f}s)"


class CommandRunner:
    """外部命令执行器

    每次调用只执行一次，不做重试；重试策略由调用方决定。
    trace 为 True 时记录每次调用的命令行和原始输出。
    """

    def __init__(self, trace: bool = False):
        self.trace = trace

    async def run(self, program: str, args: Sequence[str] = (),
                  deadline: Optional[Deadline] = None) -> bytes:
        """运行命令并返回合并后的输出

        Raises:
            CommandLaunchError: 程序无法启动
            CommandFailedError: 程序返回非零退出码
            CommandTimeoutError: 截止时间已到
        """
        args = [str(a) for a in args]
        cmd_str = " ".join([program] + args)
        if self.trace:
            logger.info("[TAPE] 执行: %s", cmd_str)

        if deadline is not None and deadline.expired:
            raise CommandTimeoutError(program, args, launched=False)

        try:
            proc = await asyncio.create_subprocess_exec(
                program, *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                stdin=asyncio.subprocess.DEVNULL,  # 防止子进程等待输入导致阻塞
            )
        except OSError as e:
            raise CommandLaunchError(program, args, str(e)) from e

        timeout = deadline.remaining() if deadline is not None else None
        try:
            output, _ = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._terminate(proc)
            logger.warning("[TAPE] 命令超时，已终止: %s", cmd_str)
            raise CommandTimeoutError(program, args) from None
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise

        output = output or b""
        if self.trace:
            logger.info("[TAPE] 退出码: %s", proc.returncode)
            logger.info("[TAPE] 输出:\n%s", output.decode(errors="replace"))

        if proc.returncode != 0:
            raise CommandFailedError(program, args, proc.returncode, output)
        return output

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
