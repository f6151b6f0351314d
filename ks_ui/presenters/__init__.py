"""Presenters turning controller objects into tables."""
