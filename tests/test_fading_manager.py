"""
tests/test_fading_manager.py

Test multi-link fading management.

Validates:
- Controllers created on demand and reused
- Deterministic per-link seeding
- Link removal
- Link state snapshots and trace summaries
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fading_manager import FadingChannelManager
from config import MarkovConfig
from constants import ChannelType, FadingDirection
from sim_clock import SimulationClock


def make_manager(seed=42, collect_traces=True):
    clock = SimulationClock()
    config = MarkovConfig(cooldown_period_s=0.1)
    return FadingChannelManager(config, clock, seed=seed, collect_traces=collect_traces), clock


class TestFadingChannelManager:
    """Test per-link controller management."""

    def test_ensure_link_creates_new(self):
        manager, _ = make_manager()
        controller = manager.ensure_link(1, lambda: 45.0, lambda: 0.0)

        assert controller is not None
        assert controller.current_set == 1
        assert manager.get_link_ids() == [1]

    def test_ensure_link_reuses_existing(self):
        """ensure_link should reuse the existing controller."""
        manager, _ = make_manager()
        first = manager.ensure_link(1, lambda: 45.0, lambda: 0.0)
        second = manager.ensure_link(1, lambda: 70.0, lambda: 5.0)

        assert first is second
        assert second.current_set == 1

    def test_links_are_independent(self):
        """Each link owns its own controller."""
        manager, _ = make_manager()
        a = manager.ensure_link(1, lambda: 30.0, lambda: 0.0)
        b = manager.ensure_link(2, lambda: 70.0, lambda: 0.0)

        assert a is not b
        assert a.current_set == 0
        assert b.current_set == 3

    def test_deterministic_per_link_seed(self):
        """Same base seed should reproduce the same fading per link."""
        manager1, clock1 = make_manager(seed=7)
        manager2, clock2 = make_manager(seed=7)
        for manager in (manager1, manager2):
            manager.ensure_link(4, lambda: 45.0, lambda: 10.0)

        values1, values2 = [], []
        for _ in range(20):
            clock1.advance(0.5)
            clock2.advance(0.5)
            values1.append(manager1.get_fading(4, ChannelType.FORWARD_USER))
            values2.append(manager2.get_fading(4, ChannelType.FORWARD_USER))

        assert values1 == values2

    def test_remove_link(self):
        manager, _ = make_manager()
        controller = manager.ensure_link(1, lambda: 45.0, lambda: 0.0)
        collector = manager.get_collector(1)

        assert manager.remove_link(1)
        assert not manager.remove_link(1)
        assert manager.get_link_ids() == []
        assert len(controller.fading_trace) == 0
        with pytest.raises(KeyError):
            manager.get_fading(1, ChannelType.FORWARD_USER)
        assert collector.total_records == 0

    def test_link_state_snapshot(self):
        manager, _ = make_manager()
        controller = manager.ensure_link(1, lambda: 60.0, lambda: 0.0)
        controller.lock_to_set_and_state(2, 1)

        state = manager.get_link_state(1)
        assert state.current_set == 2
        assert state.current_state == 1
        assert state.set_lock_enabled and state.state_lock_enabled
        assert state.up_value == controller.get_cache_entry(FadingDirection.UP).value
        assert state.down_value == controller.get_cache_entry(FadingDirection.DOWN).value
        assert set(manager.get_all_link_states()) == {1}

    def test_export_summary(self):
        """Recomputed values should show up in the link's trace summary."""
        manager, clock = make_manager()
        manager.ensure_link(1, lambda: 45.0, lambda: 0.0)

        for _ in range(5):
            clock.advance(0.2)
            manager.get_fading(1, ChannelType.RETURN_USER)

        summary = manager.export_summary()
        assert summary[1]["channels"]["RETURN_USER"]["count"] == 5
        assert summary[1]["link_id"] == 1

    def test_trace_collection_disabled(self):
        manager, _ = make_manager(collect_traces=False)
        manager.ensure_link(1, lambda: 45.0, lambda: 0.0)

        assert manager.get_collector(1) is None
        assert manager.export_summary() == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
