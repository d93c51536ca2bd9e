import math

import numpy as np
import pandas as pd
import pytest

from rfmetric.evaluation import (
    CUSTOM_METRIC_NAME,
    build_cv,
    build_scoring,
    compute_metrics,
    custom_accuracy,
    resampled_confusion_matrix,
    sensitivity_score,
)
from rfmetric.models.random_forest import build_model
from rfmetric.preprocessing import CLASS_LABELS, load_data
from sklearn.pipeline import Pipeline


def test_perfect_agreement_scores_one():
    obs = ["A", "A", "B", "B", "C", "C"]
    assert custom_accuracy(obs, list(obs), positive_class="C") == pytest.approx(1.0)


def test_designated_class_never_detected_scores_zero():
    obs = ["A", "A", "B", "B", "C", "C"]
    pred = ["A", "A", "B", "B", "A", "A"]
    assert custom_accuracy(obs, pred, positive_class="C") == 0.0


def test_partial_correctness():
    obs = ["C", "C", "C", "C"]
    pred = ["C", "C", "A", "A"]
    assert custom_accuracy(obs, pred, positive_class="C") == pytest.approx(0.5)


def test_harmonic_mean_of_unequal_values():
    # sensitivity(C) = 1/2, accuracy = 5/6
    obs = ["A", "A", "B", "B", "C", "C"]
    pred = ["A", "A", "B", "B", "C", "A"]
    expected = 2 / (1 / 0.5 + 1 / (5 / 6))
    assert custom_accuracy(obs, pred, positive_class="C") == pytest.approx(expected)


def test_invariant_to_pair_permutation():
    rng = np.random.default_rng(0)
    obs = np.array(["A", "B", "C", "C", "B", "A", "C", "B", "C", "A"])
    pred = np.array(["A", "C", "C", "B", "B", "A", "C", "A", "C", "B"])
    order = rng.permutation(len(obs))

    assert custom_accuracy(obs[order], pred[order], positive_class="C") == pytest.approx(
        custom_accuracy(obs, pred, positive_class="C")
    )


def test_absent_class_gives_nan():
    obs = ["A", "A", "B"]
    pred = ["A", "B", "B"]
    assert math.isnan(custom_accuracy(obs, pred, positive_class="C"))
    assert math.isnan(sensitivity_score(obs, pred, positive_class="C"))


def test_scoring_default_has_accuracy_and_kappa():
    assert set(build_scoring("default")) == {"Accuracy", "Kappa"}


def test_scoring_custom_replaces_default():
    assert list(build_scoring("custom_accuracy")) == [CUSTOM_METRIC_NAME]


def test_scoring_unknown_summary():
    with pytest.raises(ValueError, match="Unknown summary"):
        build_scoring("twoClassSummary")


def test_compute_metrics():
    obs = ["A", "A", "B", "B", "C", "C"]
    pred = ["A", "A", "B", "B", "C", "A"]
    m = compute_metrics(obs, pred, positive_class="C")

    assert m["accuracy"] == pytest.approx(5 / 6)
    assert m["sensitivity"] == pytest.approx(0.5)
    assert np.asarray(m["confusion_matrix"]).sum() == 6
    assert CUSTOM_METRIC_NAME in m


def test_build_cv_is_stratified():
    X, y = load_data({})
    cv = build_cv(n_splits=5, seed=1)
    for _, te_idx in cv.split(X, y):
        counts = y.iloc[te_idx].value_counts()
        assert (counts == 10).all()


def test_resampled_confusion_matrix():
    X, y = load_data({})
    pipe = Pipeline([("clf", build_model(n_estimators=10, n_jobs=None))])

    table, acc, predictions = resampled_confusion_matrix(pipe, X, y, build_cv(3, seed=7))

    assert list(table.index) == CLASS_LABELS
    assert list(table.columns) == CLASS_LABELS
    assert table.values.sum() == pytest.approx(100.0)
    assert 0.8 <= acc <= 1.0
    assert len(predictions) == 150
    assert sorted(predictions["rowIndex"]) == list(range(150))
    assert set(predictions["Resample"]) == {"Fold1", "Fold2", "Fold3"}


def test_integer_labels():
    # sensitivity(2) = 1/2, accuracy = 3/4
    expected = 2 / (1 / 0.5 + 1 / 0.75)
    assert custom_accuracy([0, 0, 2, 2], [0, 0, 2, 0], positive_class=2) == pytest.approx(expected)
    assert sensitivity_score([0, 0, 2, 2], [0, 0, 2, 0], positive_class=2) == pytest.approx(0.5)


def test_integer_categorical_labels():
    obs = pd.Series(pd.Categorical([1, 1, 2, 2]))
    pred = np.array([1, 1, 2, 2])
    assert custom_accuracy(obs, pred, positive_class=2) == pytest.approx(1.0)

    m = compute_metrics(obs, pred, positive_class=2)
    assert m["accuracy"] == pytest.approx(1.0)
    assert m["sensitivity"] == pytest.approx(1.0)


def test_custom_scorer_with_integer_target():
    X, y = load_data({})
    y_int = pd.Series(y.cat.codes.astype(int), name="Species")
    scorer = build_scoring("custom_accuracy", positive_class=2)[CUSTOM_METRIC_NAME]

    model = build_model(n_estimators=10, n_jobs=None).fit(X, y_int)
    assert 0.0 <= scorer(model, X, y_int) <= 1.0
