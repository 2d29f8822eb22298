"""
f95rss - F95zone latest-updates mirror and curated RSS feed
"""

__version__ = "0.3.0"
