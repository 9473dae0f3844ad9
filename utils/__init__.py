#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
工具类模块
Utility Module
"""

from .logger import setup_logging

__all__ = [
    'setup_logging'
]
