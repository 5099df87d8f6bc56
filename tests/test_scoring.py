import pytest

from host_health.errors import UnavailableMetric
from host_health.scoring import round_half_away, score_cpu, score_disk, score_load, score_memory


@pytest.mark.parametrize(
    "value, expected",
    [(2.5, 3), (3.5, 4), (-2.5, -3), (72.5, 73), (83.4, 83), (0.49, 0), (-0.4, 0)],
)
def test_round_half_away_from_zero(value, expected):
    assert round_half_away(value) == expected


def test_cpu_score_equals_rounded_idle():
    usage, score = score_cpu(83.4)
    assert score == 83
    assert usage == pytest.approx(16.6)


def test_cpu_score_is_clamped():
    assert score_cpu(104.0)[1] == 100
    assert score_cpu(-3.0)[1] == 0


def test_memory_score_from_available():
    usage, score = score_memory(8000, 2000)
    assert usage == pytest.approx(75.0)
    assert score == 25


def test_memory_without_total_is_unavailable():
    with pytest.raises(UnavailableMetric) as excinfo:
        score_memory(0, 0)
    assert excinfo.value.metric == "memory"


def test_disk_score_is_complement():
    assert score_disk(37) == (37, 63)


def test_load_score_floored_at_zero():
    ratio, score = score_load(20, 2)
    assert ratio == pytest.approx(1000.0)
    assert score == 0


def test_load_score_below_capacity():
    ratio, score = score_load(1.2, 4)
    assert ratio == pytest.approx(30.0)
    assert score == 70


def test_load_rejects_zero_cores():
    with pytest.raises(UnavailableMetric):
        score_load(1.0, 0)
