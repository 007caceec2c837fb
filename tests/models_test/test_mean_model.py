import math

import pytest
import torch

from fitcore.datasets.dataset import LabeledData
from fitcore.models.base_model import AbstractModel
from fitcore.models.linear_model import LinearModel, LinearClassifier
from fitcore.models.ensemble_methods import (
    MeanModel,
    EnsembleConfig,
    ModelUncertainty,
    create_mean_model,
    evaluate_ensemble_diversity,
)
from fitcore.utils.config import CONTINUOUS, LABEL


class ConstantClassifier(AbstractModel):
    """Votes for the same class on every input"""

    output_kind = LABEL
    has_first_parameter_derivative = False

    def __init__(self, label: int):
        super(ConstantClassifier, self).__init__()
        self.label = label

    @property
    def input_shape(self):
        return (2,)

    @property
    def output_shape(self):
        return ()

    def forward(self, x):
        return torch.full((x.shape[0],), self.label, dtype=torch.long)


@pytest.fixture
def inputs(generator):
    return torch.randn(7, 3, generator=generator)


@pytest.fixture
def sub_models():
    torch.manual_seed(3)
    return [LinearModel(3, 2), LinearModel(3, 2), LinearModel(3, 2)]


def test_single_model_returns_raw_output(inputs, sub_models):
    ensemble = MeanModel()
    ensemble.add_model(sub_models[0], 1.0)

    with torch.no_grad():
        expected = sub_models[0](inputs)

    assert torch.equal(ensemble(inputs), expected)


def test_equal_weights_give_arithmetic_mean(inputs, sub_models):
    ensemble = MeanModel(output_size=2)
    ensemble.add_model(sub_models[0])
    ensemble.add_model(sub_models[1])

    with torch.no_grad():
        expected = (sub_models[0](inputs) + sub_models[1](inputs)) / 2

    torch.testing.assert_close(ensemble(inputs), expected)


def test_weighted_mean(inputs, sub_models):
    ensemble = create_mean_model(sub_models[:2], EnsembleConfig(model_weights=[3.0, 1.0]))

    with torch.no_grad():
        expected = (3 * sub_models[0](inputs) + sub_models[1](inputs)) / 4

    torch.testing.assert_close(ensemble.eval_batch(inputs), expected)


def test_equal_weight_vote_distribution():
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=3)
    ensemble.add_model(ConstantClassifier(0))
    ensemble.add_model(ConstantClassifier(1))

    outputs = ensemble(torch.zeros(4, 2))

    assert torch.equal(outputs, torch.tensor([[0.5, 0.5, 0.0]] * 4))


def test_weighted_vote_distribution():
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=2)
    ensemble.add_model(ConstantClassifier(0), 3.0)
    ensemble.add_model(ConstantClassifier(1), 1.0)

    outputs = ensemble(torch.zeros(2, 2))

    assert torch.equal(outputs, torch.tensor([[0.75, 0.25], [0.75, 0.25]]))


def test_vote_with_linear_classifiers_sums_to_one(inputs):
    torch.manual_seed(5)
    ensemble = create_mean_model(
        [LinearClassifier(3, 4), LinearClassifier(3, 4), LinearClassifier(3, 4)],
        EnsembleConfig(sub_model_kind=LABEL, output_size=4),
    )

    outputs = ensemble(inputs)

    assert outputs.shape == (7, 4)
    torch.testing.assert_close(outputs.sum(dim=1), torch.ones(7))


def test_weight_sum_tracks_updates(sub_models):
    ensemble = MeanModel()
    ensemble.add_model(sub_models[0], 1.0)
    ensemble.add_model(sub_models[1], 2.5)
    ensemble.add_model(sub_models[2], 0.25)

    ensemble.set_weight(1, 4.0)
    assert ensemble.weight(1) == 4.0
    assert ensemble.weight_sum == 5.25

    ensemble.remove_model(0)
    assert ensemble.number_of_models() == 2
    assert ensemble.get_model(0) is sub_models[1]
    assert ensemble.weight_sum == 4.25
    assert ensemble.weight_sum == sum(ensemble.weight(i) for i in range(2))

    ensemble.clear_models()
    assert ensemble.number_of_models() == 0
    assert ensemble.weight_sum == 0.0


@pytest.mark.parametrize("weight", [0.0, -1.0, float('nan'), float('inf')])
def test_invalid_weight_leaves_ensemble_unchanged(sub_models, weight):
    ensemble = MeanModel()
    ensemble.add_model(sub_models[0], 2.0)

    with pytest.raises(ValueError):
        ensemble.add_model(sub_models[1], weight)
    with pytest.raises(ValueError):
        ensemble.set_weight(0, weight)

    assert ensemble.number_of_models() == 1
    assert ensemble.weight(0) == 2.0
    assert ensemble.weight_sum == 2.0


def test_output_kind_mismatch_rejected(sub_models):
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=2)

    with pytest.raises(TypeError):
        ensemble.add_model(sub_models[0])
    assert ensemble.number_of_models() == 0

    with pytest.raises(TypeError):
        MeanModel(sub_model_kind=CONTINUOUS).add_model(ConstantClassifier(0))


def test_unknown_sub_model_kind():
    with pytest.raises(ValueError):
        MeanModel(sub_model_kind='ranking')


def test_empty_ensemble_cannot_evaluate(inputs):
    with pytest.raises(ValueError):
        MeanModel()(inputs)


def test_output_size_mismatch_rejected(inputs, sub_models):
    ensemble = MeanModel(output_size=3)
    ensemble.add_model(sub_models[0])

    with pytest.raises(ValueError):
        ensemble(inputs)


def test_sub_model_width_mismatch_rejected_without_declared_size(inputs):
    torch.manual_seed(6)
    ensemble = MeanModel()
    ensemble.add_model(LinearModel(3, 3))
    ensemble.add_model(LinearModel(3, 1))

    with pytest.raises(ValueError):
        ensemble(inputs)


def test_vote_shares_follow_input_dtype():
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=2)
    ensemble.add_model(ConstantClassifier(0))
    ensemble.add_model(ConstantClassifier(1))

    assert ensemble(torch.zeros(3, 2, dtype=torch.float64)).dtype == torch.float64
    assert ensemble(torch.zeros(3, 2)).dtype == torch.float32


def test_vote_outside_output_size_rejected():
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=2)
    ensemble.add_model(ConstantClassifier(2))

    with pytest.raises(ValueError):
        ensemble(torch.zeros(3, 2))


def test_vote_needs_output_size():
    ensemble = MeanModel(sub_model_kind=LABEL)
    ensemble.add_model(ConstantClassifier(0))

    with pytest.raises(ValueError):
        ensemble(torch.zeros(3, 2))


def test_ensemble_has_no_parameters(sub_models):
    ensemble = create_mean_model(sub_models)

    assert ensemble.number_of_parameters() == 0
    assert ensemble.parameter_vector().numel() == 0
    ensemble.set_parameter_vector(torch.zeros(0))
    with pytest.raises(ValueError):
        ensemble.set_parameter_vector(torch.zeros(1))


def test_shapes_follow_sub_models(sub_models):
    ensemble = MeanModel()
    assert ensemble.input_shape == ()

    ensemble.add_model(sub_models[0])
    assert ensemble.input_shape == (3,)
    assert ensemble.output_shape == (2,)

    ensemble.set_output_size(2)
    assert ensemble.output_shape == (2,)
    with pytest.raises(ValueError):
        ensemble.set_output_size(0)


def test_write_and_read_round_trip(tmp_path, inputs, sub_models):
    ensemble = create_mean_model(sub_models, EnsembleConfig(model_weights=[1.0, 2.0, 0.5], output_size=2))
    path = tmp_path / "ensemble.pth"

    ensemble.write(path)
    restored = MeanModel.load(path)

    assert restored.number_of_models() == 3
    assert [restored.weight(i) for i in range(3)] == [1.0, 2.0, 0.5]
    assert restored.weight_sum == ensemble.weight_sum
    assert restored.output_size == 2
    torch.testing.assert_close(restored(inputs), ensemble(inputs))


def test_read_rejects_other_kind(tmp_path, sub_models):
    path = tmp_path / "ensemble.pth"
    create_mean_model(sub_models).write(path)

    with pytest.raises(TypeError):
        MeanModel(sub_model_kind=LABEL).read(path)


def test_create_mean_model_weight_count_mismatch(sub_models):
    with pytest.raises(ValueError):
        create_mean_model(sub_models, EnsembleConfig(model_weights=[1.0]))


def test_diversity_of_disagreeing_voters():
    ensemble = MeanModel(sub_model_kind=LABEL, output_size=2)
    ensemble.add_model(ConstantClassifier(0))
    ensemble.add_model(ConstantClassifier(1))
    data = LabeledData(torch.zeros(6, 2), torch.zeros(6, dtype=torch.long), batch_size=4)

    diversity = evaluate_ensemble_diversity(ensemble, data)

    assert diversity['mean_pairwise_disagreement'] == 1.0
    assert diversity['prediction_entropy_mean'] == pytest.approx(math.log(2))


def test_vote_entropy():
    shares = torch.tensor([[0.5, 0.5, 0.0], [1.0, 0.0, 0.0]])

    entropy = ModelUncertainty.predictive_entropy(shares)

    torch.testing.assert_close(entropy, torch.tensor([math.log(2), 0.0]))


def test_prediction_variance_of_identical_models(inputs, sub_models):
    ensemble = MeanModel()
    ensemble.add_model(sub_models[0], 1.0)
    ensemble.add_model(sub_models[0], 2.0)

    torch.testing.assert_close(ModelUncertainty.prediction_variance(ensemble, inputs), torch.zeros(7))
