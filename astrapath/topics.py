"""Pub/sub topic names used across the companion core.

Each topic carries a single keyword argument:

    distress.triggered   event=DistressTriggered
    listening.state      state=SupervisorState
    companion.state      session=CompanionSession
    companion.consent    session=CompanionSession
    episode.*            episode=DistressEpisode
    sos.*                location=Optional[Location]
    notice               notice=Notice
"""

DISTRESS_TRIGGERED = "distress.triggered"

LISTENING_STATE = "listening.state"

COMPANION_STATE = "companion.state"
COMPANION_CONSENT = "companion.consent"

EPISODE_STARTED = "episode.started"
EPISODE_TICK = "episode.tick"
EPISODE_LOCATION = "episode.location"
EPISODE_CONFIRMED = "episode.confirmed"
EPISODE_CANCELLED = "episode.cancelled"
EPISODE_CLOSED = "episode.closed"

SOS_PROMPT = "sos.prompt"
SOS_CONFIRMED = "sos.confirmed"
SOS_CLOSED = "sos.closed"

NOTICE = "notice"
