"""forum-stage: discussion forum backend."""
