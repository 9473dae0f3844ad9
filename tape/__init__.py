#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
磁带驱动模块
Tape Drive Module
"""

from .capacity_log import UNKNOWN_CAPACITY, CapacityLog, MediumType
from .lto_drive import LtoTapeDrive
from .navigation import TapeNavigator

__all__ = [
    'UNKNOWN_CAPACITY',
    'CapacityLog',
    'MediumType',
    'LtoTapeDrive',
    'TapeNavigator'
]
