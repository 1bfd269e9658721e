from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from motbot.application import MotBot
from motbot.cli import main
from motbot.config import BotConfig
from motbot.exceptions import ConfigError, MotBotError


def test_main_exits_2_on_missing_credentials(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    for key in ("TELEGRAM_BOT_TOKEN", "MOT_API_KEY", "MOT_CLIENT_ID", "MOT_CLIENT_SECRET", "VES_API_KEY"):
        monkeypatch.delenv(key, raising=False)

    assert main(["--env-file", str(tmp_path / "missing.env")]) == 2
    assert "TELEGRAM_BOT_TOKEN" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_bot_requires_context_manager() -> None:
    bot = MotBot(BotConfig("t", "k", "id", "secret", "ves"))
    with pytest.raises(MotBotError):
        await bot.run(asyncio.Event())


@pytest.mark.asyncio
async def test_bot_refuses_invalid_config() -> None:
    with pytest.raises(ConfigError):
        async with MotBot(BotConfig("", "k", "id", "secret", "ves")):
            pass
