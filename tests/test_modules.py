"""Behaviour shared by every built-in stage."""

import numpy as np
import pytest

from gesturelib import (
    TimeseriesBuffer,
    MovingAverageFilter,
    DeadZone,
    MinDist,
    LinearRegression,
    ClassLabelChangeFilter,
    ClassLabelFilter,
    TypeMismatchError,
)


def trained_min_dist():
    clf = MinDist()
    clf.train([[0.0, 0.0], [1.0, 1.0]], [1, 2])
    return clf


def trained_regression():
    reg = LinearRegression()
    reg.train([[0.0], [1.0], [2.0]], [0.0, 2.0, 4.0])
    return reg


# (factory, sample) pairs; the sample is valid input for the module
STAGES = [
    (lambda: TimeseriesBuffer(3, 2), [1.0, 2.0]),
    (lambda: MovingAverageFilter(2, 1), [4.0]),
    (lambda: DeadZone(-1.0, 1.0, 2), [3.0, -0.5]),
    (trained_min_dist, [0.9, 0.8]),
    (trained_regression, [1.5]),
    (ClassLabelChangeFilter, [2.0]),
    (lambda: ClassLabelFilter(2, 3), [1.0]),
]


def observable_state(module):
    state = {k: v for k, v in vars(module).items() if k not in ("_logger", "last_error")}
    return {
        k: (v.to_array().tolist() if hasattr(v, "to_array") else
            v.tolist() if isinstance(v, np.ndarray) else v)
        for k, v in state.items()
    }


@pytest.mark.parametrize("factory,sample", STAGES)
class TestStageContract:
    def test_reset_is_idempotent(self, factory, sample):
        module = factory()
        assert module.process(sample)
        assert module.reset()
        once = observable_state(module)
        assert module.reset()
        assert observable_state(module) == once

    def test_deep_copy_matches(self, factory, sample):
        module = factory()
        module.process(sample)
        copy = module.deep_copy()
        assert copy is not None
        assert copy.get_module_type() == module.get_module_type()
        assert copy.get_num_output_dimensions() == module.get_num_output_dimensions()
        assert copy.is_initialized == module.is_initialized

    def test_new_instance_is_same_type(self, factory, sample):
        module = factory()
        assert type(module.create_new_instance()) is type(module)

    def test_clone_from_other_type_fails(self, factory, sample):
        module = factory()
        other = DeadZone() if not isinstance(module, DeadZone) else MovingAverageFilter()
        assert not module.clone(other)
        assert isinstance(module.last_error, TypeMismatchError)
