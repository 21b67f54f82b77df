"""Application state container for the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .client import CanopyClient
from .settings import CanopySettings


@dataclass
class AppState:
    """Settings and collaborators shared by CLI commands."""

    settings: CanopySettings
    logger: logging.Logger
    client: CanopyClient = field(init=False)

    def __post_init__(self) -> None:
        self.client = CanopyClient(self.settings)
