"""
Shared constants used across multiple modules.
Single source of truth for the mood scale, disturbance vocabulary,
device types and insight thresholds.
"""

# Mood scale: value -> (emoji, label)
MOOD_SCALE = {
    1: ("😢", "Very Sad"),
    2: ("😔", "Sad"),
    3: ("😕", "Down"),
    4: ("😐", "Neutral"),
    5: ("🙂", "Okay"),
    6: ("😊", "Good"),
    7: ("😄", "Happy"),
    8: ("😁", "Very Happy"),
    9: ("🤩", "Excited"),
    10: ("🥳", "Euphoric"),
}
MOOD_MIN, MOOD_MAX = 1, 10
SLEEP_HOURS_MIN, SLEEP_HOURS_MAX = 0.0, 24.0
SLEEP_QUALITY_MIN, SLEEP_QUALITY_MAX = 1, 5

NO_DISTURBANCE = "None"
SLEEP_DISTURBANCES = (
    NO_DISTURBANCE,
    "Stress/Anxiety",
    "Noise",
    "Pain/Discomfort",
    "Temperature",
    "Light",
    "Bathroom Trips",
    "Nightmares",
    "Partner/Pet",
)

DEVICE_TYPES = {
    "fitbit": "Fitbit",
    "garmin": "Garmin",
    "apple_watch": "Apple Watch",
    "samsung": "Samsung Galaxy Watch",
    "oura": "Oura Ring",
    "other": "Other Device",
}

# Persistence keys
ENTRIES_KEY = "moodEntries"
DEVICES_KEY = "connectedDevices"
SCHEMA_VERSION_KEY = "wellnessSchemaVersion"
SCHEMA_VERSION = 2

# Aggregation / insight thresholds
DEFAULT_WINDOW = 7
MIN_ENTRIES_FOR_INSIGHTS = 3
MAX_SUGGESTIONS = 4
LOW_MOOD, HIGH_MOOD = 4, 7
SHORT_SLEEP, LONG_SLEEP = 7, 9
LOW_SLEEP_QUALITY = 3
