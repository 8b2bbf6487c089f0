"""Global constants for the proximitylink application."""

# Collection names
USERS = "users"
GROUPS = "groups"
POSTS = "posts"
COMMENTS = "comments"
LIKES = "likes"
GROUP_MEMBERS = "group_members"
CALENDAR_EVENTS = "calendar_events"
READ_STATUS = "user_group_read_status"

# Storage areas (path prefixes inside the default bucket)
GROUPS_AREA = "groups"
POST_MEDIA_AREA = "post_media"
AVATARS_AREA = "avatars"

# Firestore limits
FIRESTORE_BATCH_LIMIT = 400
FIRESTORE_IN_LIMIT = 30

# Placeholders
DEFAULT_COVER = "https://placehold.co/1200x400/e2e8f0/94a3b8?text=No+Cover"
DEFAULT_GROUP_AVATAR = "https://placehold.co/128x128?text=G"
DEFAULT_USER_AVATAR = "https://placehold.co/40x40?text=U"
DEFAULT_COMMENT_AVATAR = "https://placehold.co/32"
DEFAULT_MEDIA = "https://placehold.co/128x128?text=No+Image"

# Display fallbacks
UNKNOWN_GROUP_NAME = "Unknown group"
UNNAMED_USER = "Unnamed User"
UNKNOWN_USER = "Unknown"

# Search
GROUP_SEARCH_LIMIT = 5

# Calendar
FILL_ALL_FIELDS = "Please fill in all fields"
LOCAL_INPUT_FORMAT = "%Y-%m-%dT%H:%M"

# Badges
UNREAD_BADGE_MAX = 99
EVENT_BADGE_MAX = 9

# Uploads
IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]
MEDIA_EXTENSIONS = IMAGE_EXTENSIONS + ["mp4", "webm", "ogg"]
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg")
