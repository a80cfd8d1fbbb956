"""Application services: settings persistence and report file I/O."""
