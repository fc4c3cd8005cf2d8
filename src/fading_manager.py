"""
src/fading_manager.py

Per-link management of Markov fading controllers.

Each link (terminal to satellite) owns exactly one controller; removing the
link destroys it together with its Markov model and faders.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from constants import ChannelType, FadingDirection, TRACE_HISTORY_LENGTH
from markov_fading import MarkovFadingController
from fading_trace import FadingTraceCollector
import logging

logger = logging.getLogger(__name__)


@dataclass
class LinkFadingState:
    """Snapshot of one link's fading controller."""
    link_id: int
    current_set: int
    current_state: int
    set_lock_enabled: bool
    state_lock_enabled: bool
    up_value: float
    down_value: float


@dataclass
class FadingLink:
    """Controller and trace collector of one link."""
    link_id: int
    controller: MarkovFadingController
    collector: Optional[FadingTraceCollector] = None


class FadingChannelManager:
    """
    Manages fading controllers for all links of a simulation.

    All controllers share one configuration and one clock; each link brings
    its own elevation and velocity oracles.
    """

    def __init__(self, markov_config, clock: Callable[[], float], seed: int = None,
                 collect_traces: bool = True,
                 history_length: int = TRACE_HISTORY_LENGTH):
        """
        Initialize fading manager.

        Args:
            markov_config: Validated MarkovConfig shared by all links
            clock: Simulation time source (seconds)
            seed: Base RNG seed; link i uses seed + i
            collect_traces: Attach a FadingTraceCollector to every link
            history_length: History length of each collector
        """
        self.markov_config = markov_config
        self.clock = clock
        self.seed = seed
        self.collect_traces = collect_traces
        self.history_length = history_length
        self.links: Dict[int, FadingLink] = {}

    def ensure_link(self, link_id: int, elevation: Callable[[], float],
                    velocity: Callable[[], float]) -> MarkovFadingController:
        """
        Get or create the controller of a link.

        The oracles are only used when the link is created.

        Args:
            link_id: Link identifier
            elevation: Elevation oracle (degrees)
            velocity: Velocity oracle (m/s)

        Returns:
            MarkovFadingController of the link
        """
        if link_id not in self.links:
            link_seed = None if self.seed is None else self.seed + link_id
            controller = MarkovFadingController(
                self.markov_config, elevation, velocity, self.clock, seed=link_seed
            )
            collector = None
            if self.collect_traces:
                collector = FadingTraceCollector(self.history_length, link_id=link_id)
                collector.attach(controller.fading_trace)
            self.links[link_id] = FadingLink(link_id, controller, collector)
            logger.info(f"Fading link {link_id} created (seed={link_seed})")
        return self.links[link_id].controller

    def get_controller(self, link_id: int) -> MarkovFadingController:
        """Return an existing link's controller."""
        return self.links[link_id].controller

    def get_collector(self, link_id: int) -> Optional[FadingTraceCollector]:
        """Return an existing link's trace collector (None when disabled)."""
        return self.links[link_id].collector

    def get_fading(self, link_id: int, channel_type: ChannelType) -> float:
        """
        Get fading value of a link.

        Args:
            link_id: Existing link identifier
            channel_type: Channel the value is requested for
        """
        return self.get_controller(link_id).get_fading(channel_type)

    def remove_link(self, link_id: int) -> bool:
        """
        Destroy a link and its controller.

        Returns:
            True if the link existed
        """
        link = self.links.pop(link_id, None)
        if link is None:
            return False
        if link.collector is not None:
            link.controller.fading_trace.disconnect(link.collector.record)
        logger.info(f"Fading link {link_id} removed")
        return True

    def get_link_ids(self) -> List[int]:
        """Identifiers of all managed links."""
        return sorted(self.links)

    def get_link_state(self, link_id: int) -> LinkFadingState:
        """Snapshot of a link's controller."""
        controller = self.get_controller(link_id)
        return LinkFadingState(
            link_id=link_id,
            current_set=controller.current_set,
            current_state=controller.current_state,
            set_lock_enabled=controller.set_lock_enabled,
            state_lock_enabled=controller.state_lock_enabled,
            up_value=controller.get_cache_entry(FadingDirection.UP).value,
            down_value=controller.get_cache_entry(FadingDirection.DOWN).value,
        )

    def get_all_link_states(self) -> Dict[int, LinkFadingState]:
        """Snapshots of all links: link_id -> LinkFadingState."""
        return {link_id: self.get_link_state(link_id) for link_id in self.links}

    def export_summary(self) -> dict:
        """Trace summaries of all links with collection enabled."""
        return {
            link_id: link.collector.export_summary()
            for link_id, link in self.links.items()
            if link.collector is not None
        }
