"""Course quiz: authoring, attempts and scoring."""
