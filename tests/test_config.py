import pytest

from qc_assignment.config import (
    DEFAULT_TAB,
    ROLE_WEIGHTS_ENV,
    TEAM_VERTICALS,
    TRIALS_ENV,
    load_engine_options,
    parse_role_weights,
)


def test_defaults_when_environment_is_empty(monkeypatch) -> None:
    monkeypatch.delenv(TRIALS_ENV, raising=False)
    monkeypatch.delenv(ROLE_WEIGHTS_ENV, raising=False)

    options = load_engine_options()

    assert options.trials == 20
    assert dict(options.role_weights) == {"AA": 5, "AS": 5, "Senior": 3, "Lead": 3}
    assert DEFAULT_TAB == TEAM_VERTICALS[0]


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv(TRIALS_ENV, "5")
    monkeypatch.setenv(ROLE_WEIGHTS_ENV, "Lead=4, Intern=1")

    options = load_engine_options()

    assert options.trials == 5
    assert options.role_weights["Lead"] == 4
    assert options.role_weights["Intern"] == 1
    assert options.role_weights["AA"] == 5


def test_explicit_trials_win_over_environment(monkeypatch) -> None:
    monkeypatch.setenv(TRIALS_ENV, "5")

    assert load_engine_options(trials=2).trials == 2


@pytest.mark.parametrize("value", ["many", "0", "-3"])
def test_bad_trials_value(monkeypatch, value) -> None:
    monkeypatch.setenv(TRIALS_ENV, value)

    with pytest.raises(ValueError, match=TRIALS_ENV):
        load_engine_options()


@pytest.mark.parametrize("raw", ["Lead", "=3", "Lead=high", "Lead=-3", "AA=0"])
def test_bad_role_weights(raw) -> None:
    with pytest.raises(ValueError, match=ROLE_WEIGHTS_ENV):
        parse_role_weights(raw)
