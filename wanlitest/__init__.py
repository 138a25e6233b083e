"""Acceptance test result collection and reporting for Wanli Academy."""

__version__ = '0.3'
