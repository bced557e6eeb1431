#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Dependency checks, executable lookups and timing helpers."""
