"""Tests for the shared pipeline records."""

import time

import numpy as np
import pytest
import scipy.sparse as sp

from cvxpipe.core import ConeDims, ConicData, SolveResult, StageTimings, Status


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("optimal", Status.OPTIMAL),
        ("OPTIMAL_INACCURATE", Status.OPTIMAL_INACCURATE),
        ("infeasible", Status.INFEASIBLE),
        ("user_limit", Status.USER_LIMIT),
        ("something else", Status.UNKNOWN),
        (None, Status.UNKNOWN),
    ],
)
def test_status_from_cvxpy(raw, expected):
    assert Status.from_cvxpy(raw) is expected


def test_status_predicates():
    assert Status.OPTIMAL_INACCURATE.is_optimal
    assert Status.OPTIMAL_INACCURATE.is_inaccurate
    assert not Status.INFEASIBLE.is_optimal
    assert Status.INFEASIBLE.is_solution
    assert not Status.SOLVER_ERROR.is_solution
    assert not Status.NOT_DCP.is_solution


def test_cone_dims_from_scs_dict():
    dims = ConeDims.from_cvxpy({"z": 2, "l": 3, "q": [3, 4], "ep": 1, "s": [2]})
    assert dims.zero == 2
    assert dims.soc == (3, 4)
    assert dims.cone_rows == 3 + 7 + 3 + 3
    assert dims.total == dims.cone_rows + 2
    assert dims.as_dict()["q"] == [3, 4]


def test_cone_dims_from_ecos_dict():
    dims = ConeDims.from_cvxpy({"l": 1, "q": [3], "e": 2})
    assert dims.exp == 2
    assert dims.zero == 0


def test_conic_data_objective_includes_offset_and_quadratic():
    data = ConicData(
        c=np.array([1.0, -1.0]),
        A=sp.csc_matrix((0, 2)),
        b=np.zeros(0),
        G=sp.csc_matrix((0, 2)),
        h=np.zeros(0),
        dims=ConeDims(),
        offset=2.0,
        P=sp.csc_matrix(2.0 * np.eye(2)),
    )
    # 0.5 * 2 * (1 + 4) + (1 - 2) + 2
    assert data.objective([1.0, 2.0]) == pytest.approx(6.0)
    assert data.n_eq == 0
    assert data.n_cone == 0


def test_stage_timer_accumulates():
    timings = StageTimings()
    with timings.stage("solve"):
        time.sleep(0.01)
    with timings.stage("solve"):
        time.sleep(0.01)
    assert timings.solve >= 0.02
    assert timings.verify == 0.0
    assert timings.overhead == pytest.approx(0.0)
    assert timings.overhead_fraction == pytest.approx(0.0)


def test_stage_timer_records_on_exception():
    timings = StageTimings()
    with pytest.raises(RuntimeError):
        with timings.stage("canonicalize"):
            raise RuntimeError("boom")
    assert timings.canonicalize > 0.0


def test_unknown_stage():
    with pytest.raises(ValueError, match="Unknown stage"):
        with StageTimings().stage("build"):
            pass


def test_mean_of_timings():
    mean = StageTimings.mean([StageTimings(solve=1.0, verify=0.5), StageTimings(solve=3.0)])
    assert mean.solve == pytest.approx(2.0)
    assert mean.verify == pytest.approx(0.25)
    assert StageTimings.mean([]).total == 0.0


def test_value_of_lists_known_names():
    result = SolveResult(Status.OPTIMAL, value=0.0, variables={"x": np.zeros(1)})
    np.testing.assert_array_equal(result.value_of("x"), [0.0])
    with pytest.raises(KeyError, match="known: x"):
        result.value_of("z")
