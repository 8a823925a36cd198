"""Service layer: persistence for lessons and chats."""
