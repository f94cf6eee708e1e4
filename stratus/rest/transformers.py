"""Response transformers: map a raw ``Response`` to an operation's return value."""

from __future__ import annotations

from typing import Any

from .request import Response


def parse_json(response: Response) -> Any:
    return response.json()


def parse_text(response: Response) -> str:
    return response.text()


def return_status(response: Response) -> int:
    return response.status


def return_none(_: Response) -> None:
    return None


def return_true(_: Response) -> bool:
    return True
