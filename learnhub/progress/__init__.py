"""Lesson progress tracking and course progress aggregation."""
