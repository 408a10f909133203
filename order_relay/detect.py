"""Identify which order source a header row belongs to."""

from __future__ import annotations

from typing import Iterable

from order_relay.channels import CHANNELS, REQUIRED_HEADERS, UNKNOWN


def has_all(headers: Iterable[str], required: Iterable[str]) -> bool:
    present = set(headers)
    return all(label in present for label in required)


def matching_channels(headers: Iterable[str]) -> list[str]:
    labels = list(headers)
    return [channel for channel in CHANNELS if has_all(labels, REQUIRED_HEADERS[channel])]


def detect_channel(headers: Iterable[str]) -> str:
    matches = matching_channels(headers)
    return matches[0] if matches else UNKNOWN
