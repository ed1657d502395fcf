"""
Names shared by the tip repository, the opt-in flows and the dispatcher.
"""

# Category sentinels
RANDOM_CATEGORY = "random"
RECENT_TIP = "most recent"

# Intents
WELCOME_INTENT = "Default Welcome Intent"
TELL_TIP_INTENT = "tell_tip"
TELL_LATEST_TIP_INTENT = "tell_latest_tip"
SETUP_PUSH_INTENT = "setup_push"
FINISH_PUSH_SETUP_INTENT = "finish_push_setup"
SETUP_UPDATE_INTENT = "setup_update"
FINISH_UPDATE_SETUP_INTENT = "finish_update_setup"

# Intent parameters
CATEGORY_PARAMETER = "category"

# Daily updates are always registered with this frequency
DAILY_FREQUENCY = "DAILY"

# Push delivery
PUSH_SCOPES = ["https://www.googleapis.com/auth/actions.fulfillment.conversation"]
PUSH_ENDPOINT = "https://actions.googleapis.com/v2/conversations:send"
PUSH_NOTIFICATION_TITLE = "AoG tips latest tip"
PUSH_TIMEOUT_SECONDS = 10
