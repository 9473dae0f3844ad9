#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
配置管理模块
Configuration Management Module
"""

from .settings import Settings, get_settings, reload_settings

__all__ = [
    'Settings',
    'get_settings',
    'reload_settings'
]
