import pytest
import torch

from fitcore.objectives import TwoNormRegularizer, OneNormRegularizer, estimate_derivative


def test_two_norm_value_and_gradient():
    regularizer = TwoNormRegularizer()
    point = torch.tensor([1.0, -2.0, 3.0], dtype=torch.float64)

    value, gradient = regularizer.eval_derivative(point)

    assert regularizer.eval(point) == 7.0
    assert value == 7.0
    assert torch.equal(gradient, point)


def test_one_norm_value_and_gradient():
    regularizer = OneNormRegularizer()
    point = torch.tensor([1.5, -2.0, 0.0], dtype=torch.float64)

    value, gradient = regularizer.eval_derivative(point)

    assert value == 3.5
    assert torch.equal(gradient, torch.tensor([1.0, -1.0, 0.0], dtype=torch.float64))


def test_mask_excludes_entries():
    regularizer = TwoNormRegularizer(mask=[1.0, 0.0])
    point = torch.tensor([2.0, 5.0], dtype=torch.float64)

    value, gradient = regularizer.eval_derivative(point)

    assert value == 2.0
    assert torch.equal(gradient, torch.tensor([2.0, 0.0], dtype=torch.float64))
    assert regularizer.number_of_variables() == 2


def test_mask_length_must_match():
    with pytest.raises(ValueError):
        TwoNormRegularizer(number_of_variables=3, mask=[1.0, 0.0])


def test_unsized_regularizer_accepts_any_length():
    regularizer = OneNormRegularizer()

    assert regularizer.number_of_variables() is None
    assert regularizer.eval([1.0, -1.0]) == 2.0
    assert regularizer.eval([1.0, -1.0, 4.0, 0.5]) == 6.5


def test_sized_regularizer_rejects_wrong_length():
    with pytest.raises(ValueError):
        TwoNormRegularizer(number_of_variables=2).eval([1.0, 2.0, 3.0])


def test_gradient_buffer():
    regularizer = TwoNormRegularizer()
    buffer = torch.zeros(2, dtype=torch.float64)

    regularizer.eval_derivative(torch.tensor([1.0, 2.0], dtype=torch.float64), out=buffer)

    assert torch.equal(buffer, torch.tensor([1.0, 2.0], dtype=torch.float64))


def test_estimate_derivative_of_two_norm(random_point):
    point = random_point(6)

    estimate = estimate_derivative(TwoNormRegularizer(), point)

    torch.testing.assert_close(estimate, point, rtol=1e-6, atol=1e-8)


def test_estimate_derivative_leaves_point_untouched(random_point):
    point = random_point(3)
    before = point.clone()

    estimate_derivative(TwoNormRegularizer(), point)

    assert torch.equal(point, before)
