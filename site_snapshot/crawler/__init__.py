# site_snapshot/crawler/__init__.py
"""Crawl-and-mirror engine: frontier, browser sessions, asset capture, rewriting."""
