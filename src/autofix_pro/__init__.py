"""
Python Autofix Pro: automated formatting and lint fixes for pull requests.
"""

__version__ = "0.3.0"
__author__ = "Python Autofix Pro Team"
__description__ = "GitHub App that formats and lint-fixes Python pull requests with ruff"
