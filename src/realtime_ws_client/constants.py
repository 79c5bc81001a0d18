"""Wire-level constants shared by the connection manager."""

# Close codes
NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006
INTERNAL_ERROR = 1011
CREDENTIAL_EXPIRED = 4001

CLIENT_DISCONNECT_REASON = "Client disconnect"

# Outbound liveness frame
PING_MESSAGE = {"type": "ping"}

# Paths below the WebSocket base URL
BROADCAST_PATH = "/broadcast"
USER_PATH = "/user"
TOKEN_QUERY_PARAM = "token"

TOKEN_REFRESH_PATH = "/auth/token/refresh"
