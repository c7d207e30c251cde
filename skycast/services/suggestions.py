"""Activity suggestion from the current conditions.

Thresholds are compared with the raw values as received, whatever the unit
mode of the fetch.
"""
from __future__ import annotations

from typing import Callable, List, Tuple


HOT_ABOVE = 30.0
WARM_ABOVE = 20.0
COLD_BELOW = 10.0
WINDY_ABOVE = 20.0
HUMID_ABOVE = 80.0

DEFAULT_SUGGESTION = "Enjoy your day!"

Rule = Tuple[Callable[[str, float, float, float], bool], str]

RULES: List[Rule] = [
    (lambda d, t, w, h: "rain" in d, "Grab an umbrella!"),
    (lambda d, t, w, h: "snow" in d, "It's snowing! Stay warm and enjoy the atmosphere!"),
    (
        lambda d, t, w, h: "storm" in d,
        "Thunderstorms are rolling in! Stay inside if possible, and avoid tall trees and open fields.",
    ),
    (lambda d, t, w, h: d == "clear sky", "It's a nice day for a jog!"),
    (lambda d, t, w, h: d in ("few clouds", "scattered clouds"), "Perfect weather for a walk or a trip to the park!"),
    (lambda d, t, w, h: "cloud" in d, "It's a great time for indoor activities, or an adventurous walk outside!"),
    (
        lambda d, t, w, h: "mist" in d or "fog" in d,
        "Perfect for a quiet walk, but be mindful of lower visibility!",
    ),
    (lambda d, t, w, h: t > HOT_ABOVE, "It's hot out there! Stay hydrated and look for some shade."),
    (lambda d, t, w, h: t > WARM_ABOVE, "Warm and pleasant, a good day for a picnic or a bike ride!"),
    (lambda d, t, w, h: t < COLD_BELOW, "It's chilly! Wrap up warm before heading out."),
    (lambda d, t, w, h: w > WINDY_ABOVE, "It's windy! Hold on to your hat, maybe try flying a kite."),
    (lambda d, t, w, h: h > HUMID_ABOVE, "It's humid today, take it easy with outdoor exercise."),
]


def suggest(description: str, temp_raw: float, wind_speed_raw: float, humidity_pct: float) -> str:
    text = (description or "").strip().lower()
    for matches, message in RULES:
        if matches(text, temp_raw, wind_speed_raw, humidity_pct):
            return message
    return DEFAULT_SUGGESTION


__all__ = ["DEFAULT_SUGGESTION", "suggest"]
