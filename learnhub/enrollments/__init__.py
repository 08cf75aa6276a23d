"""Enrollment store: requests, approval and completion approval."""
