"""Role dashboards: enrollment and course counts per student, instructor and admin."""
