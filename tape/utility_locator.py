#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带工具发现
Utility Locator - 在候选路径中查找可执行的 mt / sg_logs / sg_read_attr
"""

import logging
from typing import Optional, Sequence

from tape.errors import (
    CommandFailedError,
    CommandLaunchError,
    CommandTimeoutError,
    UtilityNotFoundError,
)
from tape.command_runner import CommandRunner, Deadline

logger = logging.getLogger(__name__)

UTILS_DISCOVER_TIMEOUT = 1.0


async def discover_utility(name: str, candidates: Sequence[str], probe_arg: str = "-h",
                           timeout: float = UTILS_DISCOVER_TIMEOUT,
                           runner: Optional[CommandRunner] = None) -> str:
    """依次探测候选路径，返回第一个能够启动的程序

    程序只要被成功启动就算找到：正常退出、非零退出（例如不认识探测参数）
    或者在截止时间内被终止都说明它可以执行。只有启动失败才会尝试下一个候选。
    所有候选共享同一个截止时间。
    """
    runner = runner or CommandRunner()
    deadline = Deadline.after(timeout)
    for path in candidates:
        if deadline is not None and deadline.expired:
            logger.debug("探测 %s 超时，停止尝试剩余候选路径", name)
            break
        try:
            await runner.run(path, [probe_arg], deadline=deadline)
        except CommandLaunchError as e:
            logger.debug("候选路径不可用: %s (%s)", path, e)
            continue
        except CommandTimeoutError as e:
            if not e.launched:
                logger.debug("探测 %s 超时，%s 未能启动", name, path)
                break
            logger.debug("候选路径可以执行（%s）: %s", e, path)
        except CommandFailedError as e:
            logger.debug("候选路径可以执行（%s）: %s", e, path)
        logger.info("发现 %s: %s", name, path)
        return path
    raise UtilityNotFoundError(name, candidates)
