from __future__ import annotations

import logging
from datetime import timedelta

import discord
from discord.ext import commands, tasks
from dotenv import load_dotenv

from .commands import register_commands
from .config import Config, load_config
from .db import Database
from .external import ExternalSource, load_external_source
from .reporter import post_daily_summary
from .tracker import ActivityTracker
from .windows import midnight_utc_for_local_day, utc_now

AUTO_SUMMARY_META_KEY = "last_auto_summary_day"


class HabitTrackerBot(commands.Bot):
    def __init__(self, config: Config, db: Database, external: ExternalSource | None = None) -> None:
        intents = discord.Intents.none()
        intents.guilds = True

        super().__init__(command_prefix="!", intents=intents)

        self.config = config
        self.db = db
        self.tracker = ActivityTracker(db=db, tz=config.timezone, external=external)

        self.logger = logging.getLogger("habit-tracker-bot")

        # runtime_ready prevents the scheduler from running before channel/permission checks pass.
        self.runtime_ready = False
        self.report_channel: discord.TextChannel | None = None

    async def setup_hook(self) -> None:
        register_commands(self)
        await self.tree.sync(guild=discord.Object(id=self.config.guild_id))
        if self.config.daily_summary_enabled:
            self.daily_summary_loop.start()

    async def on_ready(self) -> None:
        self.logger.info("Connected as %s (%s)", self.user, self.user.id if self.user else "unknown")
        if self.runtime_ready:
            return

        if await self._validate_runtime_resources():
            self.runtime_ready = True
            self.logger.info("Runtime checks passed")

    async def _validate_runtime_resources(self) -> bool:
        # Fail fast if the guild, channel or permissions are misconfigured.
        guild = self.get_guild(self.config.guild_id)
        if guild is None:
            self.logger.error("Configured guild %s not found", self.config.guild_id)
            await self.close()
            return False

        report = guild.get_channel(self.config.report_channel_id)
        if not isinstance(report, discord.TextChannel):
            self.logger.error("Report channel %s is missing or not a text channel", self.config.report_channel_id)
            await self.close()
            return False

        me = guild.me
        if me is None and self.user is not None:
            me = guild.get_member(self.user.id)

        if me is None:
            self.logger.error("Unable to resolve bot member in guild %s", guild.id)
            await self.close()
            return False

        perms = report.permissions_for(me)
        if not perms.view_channel or not perms.send_messages:
            self.logger.error("Missing view/send permission in report channel %s", report.id)
            await self.close()
            return False

        self.report_channel = report
        return True

    @tasks.loop(seconds=30)
    async def daily_summary_loop(self) -> None:
        if not self.runtime_ready or self.report_channel is None:
            return

        now_local = utc_now().astimezone(self.config.timezone)
        target_day = (now_local.date() - timedelta(days=1)).isoformat()
        # Guard against duplicate posts; the marker survives restarts.
        if self.db.get_meta(AUTO_SUMMARY_META_KEY) == target_day:
            return

        # Yesterday as seen from its last second.
        as_of = midnight_utc_for_local_day(now_local.date(), self.config.timezone) - timedelta(seconds=1)
        self.logger.info("Posting daily summary for %s", target_day)

        try:
            stats = self.tracker.compute_statistics(now=as_of)
            await post_daily_summary(self.report_channel, stats, target_day)
        except Exception:  # pragma: no cover - runtime safety
            self.logger.exception("Failed to post daily summary")
            return

        self.db.set_meta(AUTO_SUMMARY_META_KEY, target_day)

    @daily_summary_loop.before_loop
    async def before_daily_summary_loop(self) -> None:
        await self.wait_until_ready()

    async def close(self) -> None:
        if self.daily_summary_loop.is_running():
            self.daily_summary_loop.cancel()
        self.db.close()
        await super().close()


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def load_external(config: Config) -> ExternalSource | None:
    if config.external_entries_path is None or config.external_activity_id is None:
        return None
    return load_external_source(config.external_entries_path, config.external_activity_id)


def main() -> None:
    load_dotenv()
    configure_logging()

    config = load_config()
    db = Database(config.database_path)
    db.initialize()

    bot = HabitTrackerBot(config=config, db=db, external=load_external(config))
    bot.run(config.discord_token)


if __name__ == "__main__":
    main()
