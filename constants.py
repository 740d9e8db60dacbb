import os

REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

# Per-session outbound frame buffer. Frames past this are dropped (best-effort delivery).
SESSION_OUTBOX_SIZE = int(os.getenv("SESSION_OUTBOX_SIZE", 256))

# Hand each persisted chat message to the room router from the HTTP path.
# Clients relaying through the `send_message` socket event should turn this off.
BROADCAST_ON_PERSIST = os.getenv("BROADCAST_ON_PERSIST", "true").lower() in ("1", "true", "yes")

MAX_MESSAGE_LENGTH = int(os.getenv("MAX_MESSAGE_LENGTH", 5000))
