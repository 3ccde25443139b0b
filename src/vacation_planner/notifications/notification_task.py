"""
Pick a destination from the target table and notify the user.

The task is a small state machine::

    FILTERING -> NO_MATCH
              -> GENERATING -> DELIVERED
                            -> GENERATION_FAILED

Exactly one notification is sent per run. Only an unavailable generation
capability is recovered from; every other error propagates.
"""
from __future__ import annotations

import enum
import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from vacation_planner.clients.completion_client import (
    DEFAULT_MODEL,
    CompletionClient,
    CompletionFailure,
    CompletionSuccess,
    CompletionUnavailable,
)
from vacation_planner.notifications.channels import NotificationChannel
from vacation_planner.utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="notification_task")

NO_MATCH_SUBJECT = "New data successfully processed: No suitable vacation spots found."
NO_MATCH_BODY = "The query did not return any results. Consider adjusting your filters."
DELIVERED_SUBJECT = (
    "New data successfully processed: The perfect place for your summer vacation has been found."
)
GENERATION_FAILED_SUBJECT = "New data successfully processed: Text generation function inaccessible."
GENERATION_FAILED_BODY = (
    "It appears that the text generation functions are not available in your region."
)

PROMPT_TEMPLATE = (
    "Considering the data provided below in JSON format, pick the best city for a family "
    "vacation in summer? Explain your choice, offer a short description of the location and "
    "provide tips on what to pack for the vacation considering the weather conditions? "
    "Finally, could you provide a detailed plan of daily activities for a one week long "
    "vacation covering the highlights of the chosen destination?\n\n"
)


class NotificationState(str, enum.Enum):
    FILTERING = "FILTERING"
    NO_MATCH = "NO_MATCH"
    GENERATING = "GENERATING"
    DELIVERED = "DELIVERED"
    GENERATION_FAILED = "GENERATION_FAILED"


@dataclass(frozen=True)
class RecommendationPolicy:
    """Thresholds a stored vacation spot must meet to be recommended."""

    min_punctual_pct: float = 50.0
    min_avg_temperature_f: float = 70.0
    max_matches: int = 10

    def accepts(self, spot: Mapping[str, Any]) -> bool:
        """True if ``spot`` passes every filter; missing values never pass."""
        punctual = spot.get("punctual_pct")
        temperature = spot.get("avg_temperature_air_f")
        korean = spot.get("korean_restaurant_cnt")
        aquarium = spot.get("aquarium_cnt") or 0
        zoo = spot.get("zoo_cnt") or 0
        if punctual is None or temperature is None or korean is None:
            return False
        return (
            punctual >= self.min_punctual_pct
            and temperature >= self.min_avg_temperature_f
            and korean > 0
            and (aquarium > 0 or zoo > 0)
        )


def make_policy_from_env() -> RecommendationPolicy:
    """Build a RecommendationPolicy, letting the environment override thresholds."""
    return RecommendationPolicy(
        min_punctual_pct=float(os.getenv("MIN_PUNCTUAL_PCT", "50")),
        min_avg_temperature_f=float(os.getenv("MIN_AVG_TEMPERATURE_F", "70")),
        max_matches=int(os.getenv("MAX_RECOMMENDATIONS", "10")),
    )


def filter_recommendations(
    spots: Iterable[Mapping[str, Any]],
    policy: RecommendationPolicy = RecommendationPolicy(),
) -> List[Dict[str, Any]]:
    """Return at most ``policy.max_matches`` spots that pass the policy."""
    matches: List[Dict[str, Any]] = []
    for spot in spots:
        if len(matches) >= policy.max_matches:
            break
        if policy.accepts(spot):
            matches.append(dict(spot))
    return matches


def build_prompt(matches: List[Dict[str, Any]]) -> str:
    """Embed the matches as JSON after the fixed instruction text."""
    return PROMPT_TEMPLATE + json.dumps(matches, default=str)


@dataclass
class NotificationSettings:
    """Where and how to deliver the notification."""

    integration: str = "email_integration"
    recipient: str = "traveler@example.com"
    model: str = DEFAULT_MODEL


def make_notification_settings_from_env() -> NotificationSettings:
    return NotificationSettings(
        integration=os.getenv("NOTIFICATION_INTEGRATION", "email_integration"),
        recipient=os.getenv("NOTIFICATION_RECIPIENT", "traveler@example.com"),
        model=os.getenv("COMPLETION_MODEL", DEFAULT_MODEL),
    )


def run_notification(
    spots: Iterable[Mapping[str, Any]],
    *,
    completion_client: CompletionClient,
    channel: NotificationChannel,
    settings: NotificationSettings,
    policy: Optional[RecommendationPolicy] = None,
) -> NotificationState:
    """Drive the notification state machine over the stored spots."""
    policy = policy or RecommendationPolicy()
    state = NotificationState.FILTERING
    logger.info(f"State {state.value}: applying {policy}")
    matches = filter_recommendations(spots, policy)

    if not matches:
        state = NotificationState.NO_MATCH
        logger.info(f"State {state.value}: no stored spot passed the filters")
        channel.send(settings.integration, settings.recipient, NO_MATCH_SUBJECT, NO_MATCH_BODY)
        return state

    state = NotificationState.GENERATING
    logger.info(f"State {state.value}: {len(matches)} candidate spots")
    result = completion_client.complete(settings.model, build_prompt(matches))

    if isinstance(result, CompletionSuccess):
        state = NotificationState.DELIVERED
        channel.send(settings.integration, settings.recipient, DELIVERED_SUBJECT, result.text)
    elif isinstance(result, CompletionUnavailable):
        state = NotificationState.GENERATION_FAILED
        logger.warning(f"Text generation unavailable: {result.reason}")
        channel.send(
            settings.integration,
            settings.recipient,
            GENERATION_FAILED_SUBJECT,
            GENERATION_FAILED_BODY,
        )
    elif isinstance(result, CompletionFailure):
        raise result.error
    else:  # pragma: no cover - exhaustive over CompletionResult
        raise TypeError(f"Unexpected completion result: {result!r}")

    logger.info(f"State {state.value}: notification sent to {settings.recipient}")
    return state
