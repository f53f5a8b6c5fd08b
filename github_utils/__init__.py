"""
github-utils: GitHub repository tarballs and webhook signature verification.
"""

__version__ = "0.1.0"
