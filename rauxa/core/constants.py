"""Global constants for the rauxa application."""

# Collection names
LIVE_EVENTS = "live"
CHATS = "chats"
USERS = "users"
MEETUPS = "meetups"
TAGS = "tags"

# Event subcollections
PENDING = "pending"
ATTENDEES = "attendees"
DECLINED = "declined"
RSVPED_USERS = "rsvpedUsers"
MEMBERSHIP_COLLECTIONS = (PENDING, ATTENDEES, DECLINED)

# Chat subcollections
MESSAGES = "messages"
NEW_FLAGS = "new"

# User subcollections
USER_RSVP = "rsvp"
USER_DECLINED = "declined"
PROFILE_INFO = "ProfileInfo"
PROFILE_INFO_DOC = "userinfo"

# Fixed documents
TAGS_DOC = "elements"
RECOMMENDED_MEETUPS = "Recommended_Meetups"
MEETUP_EVENTS = "events"

# Storage prefixes
EVENT_PHOTOS_PREFIX = "liveEventPics"

# Chat
SYSTEM_SENDER_ID = "system"
SYSTEM_DISPLAY_NAME = "Rauxa Admin"
EVENT_CHAT_TYPE = "event_group"

# Defaults, overridable through app config
DELETE_BATCH_SIZE = 100
MESSAGES_PER_LOAD = 25
FEED_LIMIT = 20
CASCADE_MAX_WORKERS = 4
MAX_EVENT_PHOTOS = 3
