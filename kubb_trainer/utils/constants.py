"""
Game constants and watch protocol constants for Kubb Trainer.

Pitch layout follows the standard kubb field: two baselines of five
kubbs each, with the king in the centre. Watch method names match the
companion app's message channel and are part of the wire contract.
"""

import math

# =============================================================================
# Pitch Layout
# =============================================================================

KUBBS_PER_BASELINE = 5         # Kubbs standing on one baseline
NUM_BASELINES = 2              # Baseline 1 and baseline 2
TOTAL_BASELINE_KUBBS = KUBBS_PER_BASELINE * NUM_BASELINES  # 10
TOTAL_PIECES = TOTAL_BASELINE_KUBBS + 1                    # 10 kubbs + king

# =============================================================================
# 8-Meter (Standard) Training
# =============================================================================

BATONS_PER_ROUND = 6           # One player's batons in a turn
BASELINE_CLEAR_THROWS = 5      # First N throws that must all hit for a clear
TARGET_PRESETS = [30, 60, 90, 120, 180]

# =============================================================================
# Around-the-Pitch Training
# =============================================================================

SET_SIZE = 6                   # Kubb throws at one baseline before switching
PERFECT_GAME_TARGET = 11       # One throw per piece
AROUND_THE_PITCH_PRESETS = [11, 15, 20, 25, 30]
DEFAULT_AROUND_THE_PITCH_TARGET = 20

# Feasibility buffer bands (buffer = throws remaining - pieces remaining)
CRITICAL_BUFFER = 1
TIGHT_BUFFER_MIN = 2
TIGHT_BUFFER_MAX = 4

# =============================================================================
# Inkast Blast Training
# =============================================================================

# Game phase -> (min, max) kubbs inkasted per round
GAME_PHASE_RANGES = {
    "early": (1, 3),
    "mid":   (4, 7),
    "end":   (8, 10),
    "all":   (1, 10),
}

GAME_PHASE_NAMES = {
    "early": "Early Game",
    "mid":   "Mid Game",
    "end":   "End Game",
    "all":   "All Phases",
}

# Par batons by number of field kubbs
INKAST_PAR_BATONS = {
    1: 1,
    2: 1,
    3: 2,
    4: 2,
    5: 3,
    6: 3,
    7: 3,
    8: 4,
    9: 4,
    10: 4,
}

MAX_KUBB_OPTIONS = 4           # Largest multi-kubb button offered on the watch


def par_batons(field_kubbs: int) -> int:
    """Target baton count for clearing `field_kubbs` inkasted kubbs."""
    if field_kubbs in INKAST_PAR_BATONS:
        return INKAST_PAR_BATONS[field_kubbs]
    return math.ceil((field_kubbs + 1) / 2)


# =============================================================================
# Statistics
# =============================================================================

RECENT_FORM_SESSIONS = 5
EARLY_ROUND_LIMIT = 3          # Rounds 1-3 count as "early"
CLUTCH_HITS_MIN = 3            # Throws taken with 3-4 kubbs already down
CLUTCH_HITS_MAX = 4

PERFORMANCE_ZONES = {
    "excellent":  0.9,
    "good":       0.7,
    "average":    0.5,
}

# =============================================================================
# Watch Protocol
# =============================================================================

# Outbound (phone -> watch)
METHOD_START_SESSION = "startWatchSession"
METHOD_UPDATE_SESSION = "updateWatchSession"
METHOD_UPDATE_INPUT_CONFIG = "updateInputConfig"
METHOD_END_SESSION = "endWatchSession"
METHOD_HAPTIC_FEEDBACK = "sendHapticFeedback"

# Inbound (watch -> phone)
METHOD_THROW_RECORDED = "onThrowRecorded"
METHOD_CONNECTION_CHANGED = "onConnectionStateChanged"
METHOD_ERROR = "onError"

HAPTIC_SUCCESS = "success"
HAPTIC_FAILURE = "failure"

DEFAULT_BRIDGE_HOST = "127.0.0.1"
DEFAULT_BRIDGE_PORT = 47474
BRIDGE_RECONNECT_S = 5.0       # Wait between bridge connection attempts
BRIDGE_READ_TIMEOUT_S = 0.1
SEEN_EVENT_LIMIT = 256         # Remembered inbound event keys for dedup
