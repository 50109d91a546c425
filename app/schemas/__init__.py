"""
schemas/ — pydantic v2 payloads for the Design Studio API

Request bodies validate roles, priorities, ratings and email formats before a
router runs; shared field types (UTC datetimes) live in common.py.
"""
