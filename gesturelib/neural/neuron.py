"""Single feed-forward unit used by the neural network modules."""

from __future__ import annotations
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from ..core.errors import DimensionMismatchError, InvalidConfigurationError

# Pre-activations beyond this magnitude saturate; keeps exp() from overflowing.
SATURATION_LIMIT = 45.0
DEFAULT_GAMMA = 2.0
INIT_WEIGHT_RANGE = 0.1


class ActivationFunction(str, Enum):
    LINEAR = "linear"
    SIGMOID = "sigmoid"
    BIPOLAR_SIGMOID = "bipolar_sigmoid"


class Neuron:
    """Weighted sum plus bias followed by a nonlinearity.

    ``der`` is expressed in terms of the neuron's *output*: pass it the value
    returned by ``fire``, or use ``fire_with_derivative`` to get both at once.
    """

    def __init__(self, gamma: float = DEFAULT_GAMMA):
        self.activation_function = ActivationFunction.LINEAR
        self.num_inputs = 0
        self.gamma = gamma
        self.bias = 0.0
        self.previous_bias_update = 0.0
        self.weights = np.zeros(0)
        self.previous_update = np.zeros(0)

    def init(
        self,
        num_inputs: int,
        activation_function: ActivationFunction = ActivationFunction.LINEAR,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> None:
        """Size the neuron and draw weights and bias from U[-0.1, 0.1].

        Args:
            num_inputs: Number of inputs (>= 0)
            activation_function: Nonlinearity applied by ``fire``
            rng: Random source; takes precedence over ``seed``
            seed: Seed for a fresh generator when ``rng`` is not given. With
                neither, the generator is seeded from OS entropy.
        """
        if num_inputs < 0:
            raise InvalidConfigurationError(f"num_inputs must be >= 0, got {num_inputs}")
        if rng is None:
            rng = np.random.default_rng(seed)

        self.num_inputs = int(num_inputs)
        self.activation_function = ActivationFunction(activation_function)
        self.weights = rng.uniform(-INIT_WEIGHT_RANGE, INIT_WEIGHT_RANGE, size=self.num_inputs)
        self.previous_update = np.zeros(self.num_inputs)
        self.bias = float(rng.uniform(-INIT_WEIGHT_RANGE, INIT_WEIGHT_RANGE))
        self.previous_bias_update = 0.0

    def clear(self) -> None:
        self.num_inputs = 0
        self.bias = 0.0
        self.previous_bias_update = 0.0
        self.weights = np.zeros(0)
        self.previous_update = np.zeros(0)

    def fire(self, inputs) -> float:
        inputs = np.asarray(inputs, dtype=np.float64).reshape(-1)
        if inputs.shape[0] != self.num_inputs:
            raise DimensionMismatchError(
                f"Neuron expects {self.num_inputs} inputs, got {inputs.shape[0]}"
            )
        y = self.bias + float(inputs @ self.weights)
        return self._activate(y)

    def der(self, y: float) -> float:
        """Derivative of the activation at output ``y``."""
        if self.activation_function == ActivationFunction.SIGMOID:
            return y * (1.0 - y)
        if self.activation_function == ActivationFunction.BIPOLAR_SIGMOID:
            return (self.gamma * (1.0 - y * y)) / 2.0
        return 1.0

    def fire_with_derivative(self, inputs) -> Tuple[float, float]:
        y = self.fire(inputs)
        return y, self.der(y)

    def _activate(self, y: float) -> float:
        if self.activation_function == ActivationFunction.SIGMOID:
            if y <= -SATURATION_LIMIT:
                return 0.0
            if y >= SATURATION_LIMIT:
                return 1.0
            return float(1.0 / (1.0 + np.exp(-y)))
        if self.activation_function == ActivationFunction.BIPOLAR_SIGMOID:
            if y <= -SATURATION_LIMIT:
                return -1.0
            if y >= SATURATION_LIMIT:
                return 1.0
            return float((2.0 / (1.0 + np.exp(-self.gamma * y))) - 1.0)
        return y

    def __repr__(self) -> str:
        return f"Neuron(num_inputs={self.num_inputs}, activation={self.activation_function.value})"
