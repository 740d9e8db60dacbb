REDIS_CHAT_KEY = "chat:meta:{chat_id}" # chat id - hash of chat document fields
REDIS_CHAT_MESSAGES_KEY = "chat:messages:{chat_id}" # chat id - list of JSON messages, oldest first
REDIS_CHAT_PAIR_KEY = "chat:pair:{first}:{second}" # sorted participant ids - chat id for a 1:1 chat
REDIS_USER_CHATS_KEY = "user:chats:{user_id}" # user id - sorted set of chat ids scored by last_message_at
REDIS_NOTIFICATION_KEY = "notification:{notification_id}" # notification id - JSON record
REDIS_USER_NOTIFICATIONS_KEY = "user:notifications:{user_id}" # user id - sorted set of notification ids scored by created_at

# **Example `chat:meta:{id}` hash fields**
# - `id` = `{chatId}`
# - `participants` = json list of user ids
# - `created_at` = ISO timestamp
# - `last_message` = text of the newest message
# - `last_message_at` = ISO timestamp
