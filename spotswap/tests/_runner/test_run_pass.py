from unittest.mock import MagicMock
from unittest.mock import patch

from spotswap import _runner
from spotswap import _types
from spotswap.tests import _utils


@patch("spotswap._contractor.scale_down")
@patch("spotswap._expander.scale_up")
@patch("spotswap._scanner.scan")
def test_run_pass_marked(scan: MagicMock, scale_up: MagicMock, scale_down: MagicMock):
    """Should scale up when marked instances are found."""
    marked = [_types.MarkedInstance("i-1", "m3.large")]
    scan.return_value = marked
    scale_up.return_value = {"noop": [], "desired": 2}
    configs = _utils.make_configs()

    result = _runner.run_pass(configs)
    assert result == {"action": "scale_up", "noop": [], "desired": 2}
    scale_up.assert_called_once_with(configs, marked)
    assert not scale_down.called


@patch("spotswap._contractor.scale_down")
@patch("spotswap._expander.scale_up")
@patch("spotswap._scanner.scan")
def test_run_pass_unmarked(scan: MagicMock, scale_up: MagicMock, scale_down: MagicMock):
    """Should assess scaling down when no instances are marked."""
    scan.return_value = []
    scale_down.return_value = {"scale_down": False, "executed": False}

    result = _runner.run_pass(_utils.make_configs())
    assert result["action"] == "scale_down"
    assert not scale_up.called
