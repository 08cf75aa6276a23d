"""Free-text short-question sets with instructor grading."""
