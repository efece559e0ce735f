"""Constants for NHL feed processing.

Endpoint paths (relative to the configured base URLs) and upstream state
mappings.
"""

from __future__ import annotations

# Stats API (api.nhle.com/stats/rest/en)
NHL_TEAMS_PATH = "/team"
NHL_SEASON_GAMES_PATH = "/game?cayenneExp=season={season}&limit=-1"

# Web API (api-web.nhle.com/v1)
NHL_SCHEDULE_PATH = "/schedule/{date}"
NHL_SCORES_FOR_DATE_PATH = "/score/{date}"
NHL_CURRENT_SCORES_PATH = "/score/now"
NHL_PBP_PATH = "/gamecenter/{game_id}/play-by-play"

HTTP_TOO_MANY_REQUESTS = 429

# Stats feed gameStateId → canonical status
NHL_GAME_STATE_ID_MAP: dict[int, str] = {
    1: "SCHEDULED",
    2: "PREGAME",
    3: "LIVE",
    4: "LIVE",
    5: "LIVE",
    6: "FINAL",
    7: "FINAL",
}

# Web feed gameState → canonical status
NHL_GAME_STATE_MAP: dict[str, str] = {
    "FUT": "SCHEDULED",
    "SCHEDULED": "SCHEDULED",
    "PRE": "PREGAME",
    "PREGAME": "PREGAME",
    "LIVE": "LIVE",
    "CRIT": "LIVE",
    "OFF": "FINAL",
    "FINAL": "FINAL",
}

# Play-by-play event key for goals
NHL_GOAL_EVENT = "goal"

# Regulation period length used for cumulative game time
NHL_PERIOD_MINUTES = 20
