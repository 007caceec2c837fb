"""
Base class for parametric models evaluated by objective functions.

A model maps a batch of inputs to a batch of outputs and exposes its trainable
parameters as one flat vector. Parameter state can be passed explicitly on every
evaluation, so evaluating at a parameter vector never touches the module's own
parameters.
"""

import torch
import torch.nn as nn
from torch.func import functional_call, vjp
from typing import Dict, List, Tuple, Callable, Optional, Any

from fitcore.utils.config import CONTINUOUS


class AbstractModel(nn.Module):
    """
    Abstract base class for models with a flat parameter vector.

    Subclasses implement forward(), input_shape and output_shape.
    `output_kind` is CONTINUOUS for real-valued outputs or LABEL for class indices.
    """

    output_kind = CONTINUOUS
    has_first_parameter_derivative = True

    @property
    def input_shape(self) -> Tuple[int, ...]:
        raise NotImplementedError

    @property
    def output_shape(self) -> Tuple[int, ...]:
        raise NotImplementedError

    def named_trainable_parameters(self) -> List[Tuple[str, nn.Parameter]]:
        """Parameters that make up the parameter vector, in vector order"""
        return list(self.named_parameters())

    def number_of_parameters(self) -> int:
        return sum(p.numel() for _, p in self.named_trainable_parameters())

    def _parameter_dtype(self) -> torch.dtype:
        for _, p in self.named_trainable_parameters():
            return p.dtype
        return torch.get_default_dtype()

    def parameter_vector(self) -> torch.Tensor:
        """Detached copy of the current parameters as one flat vector"""
        params = [p.detach().reshape(-1) for _, p in self.named_trainable_parameters()]
        if not params:
            return torch.zeros(0, dtype=self._parameter_dtype())
        return torch.cat(params).clone()

    def check_parameter_vector(self, vector: Any) -> torch.Tensor:
        vector = torch.as_tensor(vector, dtype=self._parameter_dtype())
        expected = self.number_of_parameters()
        if vector.dim() != 1 or vector.numel() != expected:
            raise ValueError(
                f"{type(self).__name__} expects a parameter vector of length {expected}, "
                f"got shape {tuple(vector.shape)}"
            )
        return vector

    def set_parameter_vector(self, vector: Any):
        vector = self.check_parameter_vector(vector)
        offset = 0
        with torch.no_grad():
            for _, p in self.named_trainable_parameters():
                n = p.numel()
                p.copy_(vector[offset:offset + n].view_as(p))
                offset += n

    def parameter_state(self, vector: torch.Tensor) -> Dict[str, torch.Tensor]:
        """Split a flat parameter vector into named tensors for functional_call"""
        state = {}
        offset = 0
        for name, p in self.named_trainable_parameters():
            n = p.numel()
            state[name] = vector[offset:offset + n].view_as(p)
            offset += n
        return state

    def eval_batch(self, inputs: torch.Tensor,
                   state: Optional[Dict[str, torch.Tensor]] = None) -> torch.Tensor:
        """
        Evaluate a batch of inputs.

        Args:
            inputs: Batch of inputs (N, ...)
            state: Explicit parameter state from parameter_state(); the module's
                own parameters are used when None

        Returns:
            torch.Tensor: Batch of outputs
        """
        if state is None:
            return self(inputs)
        return functional_call(self, state, (inputs,))

    def eval_with_pullback(self, inputs: torch.Tensor, vector: torch.Tensor
                           ) -> Tuple[torch.Tensor, Callable[[torch.Tensor], torch.Tensor]]:
        """
        Evaluate at `vector` and return a function mapping output-space coefficients
        (N, outputs) to the weighted parameter derivative sum_n c_n^T d f(x_n) / d w.
        """
        if not self.has_first_parameter_derivative:
            raise TypeError(f"{type(self).__name__} has no parameter derivative")

        vector = self.check_parameter_vector(vector)
        if vector.numel() == 0:
            outputs = self.eval_batch(inputs)
            return outputs, lambda coefficients: torch.zeros_like(vector)

        outputs, vjp_fn = vjp(lambda v: self.eval_batch(inputs, self.parameter_state(v)), vector)

        def pullback(coefficients: torch.Tensor) -> torch.Tensor:
            (gradient,) = vjp_fn(coefficients.to(outputs.dtype))
            return gradient

        return outputs, pullback

    def weighted_parameter_derivative(self, inputs: torch.Tensor, vector: torch.Tensor,
                                      coefficients: torch.Tensor) -> torch.Tensor:
        _, pullback = self.eval_with_pullback(inputs, vector)
        return pullback(coefficients)
