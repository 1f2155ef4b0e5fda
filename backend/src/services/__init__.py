"""Supabase-backed services for the dashboard API.

Each service wraps one group of tables and raises its own
``<Name>ServiceError`` when Supabase calls fail.
"""
