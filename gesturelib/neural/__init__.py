from .neuron import Neuron, ActivationFunction

__all__ = ["Neuron", "ActivationFunction"]
