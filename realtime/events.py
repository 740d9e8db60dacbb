# Client -> server
USER_CONNECTED = "user_connected" # data: user id string
JOIN_CHAT = "join_chat" # data: chat id string
LEAVE_CHAT = "leave_chat" # data: chat id string
SEND_MESSAGE = "send_message" # data: {chatId (or roomId), message}
TYPING = "typing" # data: {chatId (or roomId), userId}
STOP_TYPING = "stop_typing" # data: {chatId (or roomId), userId}
SEND_NOTIFICATION = "send_notification" # data: {recipientId, notification}

# Server -> client
CONNECTED = "connected" # {sessionId}
USER_STATUS = "user_status" # {userId, online}
NEW_MESSAGE = "new_message" # stored message, verbatim
USER_TYPING = "user_typing" # {userId}
USER_STOP_TYPING = "user_stop_typing" # {userId}
NEW_NOTIFICATION = "new_notification" # notification, verbatim
