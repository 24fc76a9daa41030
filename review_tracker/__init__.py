"""Keeps lyric database review requests in sync with GitHub."""
