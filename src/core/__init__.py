# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for Secretaria Online.

This package contains configuration and the shared error taxonomy:
- config: Application configuration and settings
- exceptions: Typed, user-presentable domain errors
"""
