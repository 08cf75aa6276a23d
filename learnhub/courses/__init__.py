"""Course catalog: courses and their lesson registry."""
