import pytest

from procsim.config import ProcessorConfig, ProcessorStats


def test_default_config_matches_documented_defaults():
    config = ProcessorConfig()
    assert (config.r, config.k0, config.k1, config.k2, config.f) == (8, 1, 2, 3, 4)


def test_scheduling_queue_size_is_twice_unit_count():
    config = ProcessorConfig(r=2, k0=3, k1=1, k2=5, f=1)
    assert config.scheduling_queue_size == 2 * (config.k0 + config.k1 + config.k2)


@pytest.mark.parametrize("field", ["r", "k0", "k1", "k2", "f"])
def test_negative_settings_rejected(field):
    with pytest.raises(ValueError):
        ProcessorConfig(**{field: -1})


def test_config_is_immutable():
    config = ProcessorConfig()
    with pytest.raises(AttributeError):
        config.r = 3
    assert config.r == 8


def test_stats_start_zeroed():
    stats = ProcessorStats()
    assert stats.retired_instruction == 0
    assert stats.cycle_count == 0
    assert stats.avg_disp_size == 0.0


def test_finalize_averages_over_cycles_minus_one():
    stats = ProcessorStats().finalize(
        dispatch_queue_total=40, retired=20, cycle_count=11, max_dispatch_size=7
    )
    assert stats.avg_disp_size * (stats.cycle_count - 1) == pytest.approx(40)
    assert stats.avg_inst_retired * (stats.cycle_count - 1) == pytest.approx(20)
    assert stats.max_disp_size == 7
    assert stats.retired_instruction == 20
    assert stats.run_time == stats.cycle_count - 1


def test_finalize_fired_equals_retired():
    stats = ProcessorStats().finalize(13, 9, 5, 3)
    assert stats.avg_inst_fired == stats.avg_inst_retired


def test_finalize_returns_self():
    stats = ProcessorStats()
    assert stats.finalize(1, 1, 3, 1) is stats


def test_finalize_single_cycle_gives_non_finite_averages():
    stats = ProcessorStats().finalize(0, 5, 1, 0)
    assert repr(stats.avg_disp_size) == "nan"
    assert stats.avg_inst_retired == float("inf")
    assert stats.avg_inst_fired == float("inf")


def test_finalize_rejects_zero_cycles():
    with pytest.raises(ValueError):
        ProcessorStats().finalize(0, 0, 0, 0)