"""
Test suite for the fiscal core

Contains:
- tests/unit/          : Unit tests for individual modules
"""
