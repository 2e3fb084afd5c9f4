"""Terminal view of the companion core event stream."""

import logging
from typing import Optional
from pubsub import pub
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .. import topics
from ..models.episode import DistressEpisode, Location
from ..models.events import Notice, NoticeLevel
from ..models.listening import SupervisorState
from ..models.session import CompanionSession

logger = logging.getLogger(__name__)

NOTICE_STYLES = {
    NoticeLevel.INFO: "cyan",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "bold red",
}


class ConsoleView:
    """Renders countdowns, notices and confirmation summaries with rich."""

    def __init__(self, console: Optional[Console] = None, countdown_seconds: int = 10):
        """Initialize console view.

        Args:
            console: Rich console to print to
            countdown_seconds: Full countdown length, used for the progress bar
        """
        self.console = console or Console()
        self.countdown_seconds = countdown_seconds
        self._subscriptions = [
            (self._on_companion_state, topics.COMPANION_STATE),
            (self._on_consent, topics.COMPANION_CONSENT),
            (self._on_listening_state, topics.LISTENING_STATE),
            (self._on_episode_started, topics.EPISODE_STARTED),
            (self._on_episode_tick, topics.EPISODE_TICK),
            (self._on_episode_location, topics.EPISODE_LOCATION),
            (self._on_episode_confirmed, topics.EPISODE_CONFIRMED),
            (self._on_episode_cancelled, topics.EPISODE_CANCELLED),
            (self._on_episode_closed, topics.EPISODE_CLOSED),
            (self._on_sos_prompt, topics.SOS_PROMPT),
            (self._on_sos_confirmed, topics.SOS_CONFIRMED),
            (self._on_sos_closed, topics.SOS_CLOSED),
            (self._on_notice, topics.NOTICE),
        ]
        for listener, topic in self._subscriptions:
            pub.subscribe(listener, topic)
        logger.debug(f"ConsoleView subscribed to {len(self._subscriptions)} topics")

    def _on_companion_state(self, session: CompanionSession) -> None:
        if session.active:
            self.console.print("[bold green]Safe Companion mode ON[/bold green] - listening for distress keywords")
        else:
            self.console.print("[dim]Safe Companion mode OFF[/dim]")

    def _on_consent(self, session: CompanionSession) -> None:
        self.console.print(Panel(
            "AstraPath will use your microphone to listen for keywords like "
            "\"Help\", \"Stop\" and \"Leave me\".\n"
            "If one is detected it will share your location, start recording "
            "audio and video, and call emergency services.",
            title="Activate Safe Companion Mode?",
            border_style="green",
        ))

    def _on_listening_state(self, state: SupervisorState) -> None:
        if state is SupervisorState.RESTARTING:
            self.console.print("[dim]Listening session ended, restarting...[/dim]")

    def _on_episode_started(self, episode: DistressEpisode) -> None:
        self.console.print(Panel(
            f"Heard: \"{episode.trigger_text}\"\nInitiating emergency protocol in {episode.countdown_remaining}...",
            title="Distress Signal Detected!",
            border_style="red",
        ))

    def _on_episode_tick(self, episode: DistressEpisode) -> None:
        width = 20
        filled = int(width * episode.countdown_remaining / max(self.countdown_seconds, 1))
        bar = "#" * filled + "-" * (width - filled)
        self.console.print(Text(f"  [{bar}] {episode.countdown_remaining:2d}s  (cancel to abort)", style="red"))

    def _on_episode_location(self, episode: DistressEpisode) -> None:
        self.console.print(f"  Location acquired: {episode.location.describe()}")

    def _on_episode_confirmed(self, episode: DistressEpisode) -> None:
        table = Table(show_header=False, box=None)
        table.add_row("Status", "[bold]Emergency Protocol Activated[/bold]")
        if episode.location:
            table.add_row("Location Shared", episode.location.describe())
        else:
            table.add_row("Location", "[yellow]Could not retrieve location.[/yellow]")
        self.console.print(Panel(table, title="Authorities notified", border_style="green"))

    def _on_episode_cancelled(self, episode: DistressEpisode) -> None:
        self.console.print(f"[green]Alert cancelled[/green] with {episode.countdown_remaining}s remaining")

    def _on_episode_closed(self, episode: DistressEpisode) -> None:
        recorded = "recording stopped" if episode.recording_started else "no recording"
        self.console.print(f"[dim]Emergency summary closed ({recorded})[/dim]")

    def _on_sos_prompt(self, location: Location) -> None:
        self.console.print(Panel(
            f"Send an SOS alert with your location?\n{location.describe()}",
            title="SOS",
            border_style="red",
        ))

    def _on_sos_confirmed(self, location: Location) -> None:
        self.console.print(f"[bold red]SOS alert sent[/bold red] for {location.describe()}")

    def _on_sos_closed(self, location: Optional[Location]) -> None:
        self.console.print("[dim]SOS closed[/dim]")

    def _on_notice(self, notice: Notice) -> None:
        style = NOTICE_STYLES.get(notice.level, "yellow")
        self.console.print(f"[{style}]! {notice.message}[/{style}]")

    def shutdown(self) -> None:
        for listener, topic in self._subscriptions:
            try:
                pub.unsubscribe(listener, topic)
            except Exception as e:
                logger.warning(f"Error during unsubscribe: {e}")
