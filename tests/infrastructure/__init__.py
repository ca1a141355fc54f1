"""Test infrastructure: fakes for the NFC stack.

This package contains test support code, NOT actual tests.
"""
