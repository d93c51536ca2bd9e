# evaluation - 평가 코드
# Accuracy, Kappa, Sensitivity, custom metric

"""Evaluation utilities shared by all experiments.
Provides:
- custom_accuracy: harmonic mean of overall accuracy and the sensitivity of one class
- build_scoring: scorer dict for the search (default summary or the custom one)
- build_cv: StratifiedKFold factory
- compute_metrics: metrics of one set of predictions
- resampled_confusion_matrix: cross-validated confusion matrix of a fixed pipeline
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, Tuple

import numpy as np
import pandas as pd

from sklearn.base import clone
from sklearn.model_selection import StratifiedKFold
from sklearn.metrics import (
    accuracy_score, cohen_kappa_score, classification_report,
    confusion_matrix, make_scorer
)

CUSTOM_METRIC_NAME = "newAccuracyMetric"

DEFAULT_SCORING = {
    "Accuracy": "accuracy",
    "Kappa": make_scorer(cohen_kappa_score),
}


def _as_labels(y_true, y_pred):
    return np.asarray(y_true), np.asarray(y_pred)


def _label_set(y_true, y_pred, positive_class, labels: Iterable | None = None) -> list:
    if labels is None:
        labels = pd.unique(np.concatenate([y_true, y_pred]))
    labels = list(labels)
    if positive_class not in labels:
        labels.append(positive_class)
    return labels


def sensitivity_score(y_true, y_pred, positive_class: Any, labels: Iterable | None = None) -> float:
    """True-positive count of `positive_class` over its actual count; NaN if the class is absent."""
    y_true, y_pred = _as_labels(y_true, y_pred)
    labels = _label_set(y_true, y_pred, positive_class, labels)
    cm = confusion_matrix(y_true, y_pred, labels=labels)
    idx = labels.index(positive_class)
    actual = cm[idx].sum()
    if actual == 0:
        return float("nan")
    return float(cm[idx, idx] / actual)


def custom_accuracy(y_true, y_pred, positive_class: Any = "virginica",
                    labels: Iterable | None = None) -> float:
    """Harmonic mean of overall accuracy and the sensitivity of `positive_class`.

    Both quantities come from one confusion matrix over the union of observed and
    predicted labels. The class being absent from `y_true` gives NaN.
    """
    y_true, y_pred = _as_labels(y_true, y_pred)
    labels = _label_set(y_true, y_pred, positive_class, labels)
    cm = confusion_matrix(y_true, y_pred, labels=labels)

    overall_accuracy = np.trace(cm) / cm.sum()

    idx = labels.index(positive_class)
    actual = cm[idx].sum()
    detection_rate = cm[idx, idx] / actual if actual else np.nan

    vec = np.array([detection_rate, overall_accuracy], dtype=float)
    # 1/0 = inf → mean inf → 1/inf = 0
    with np.errstate(divide="ignore"):
        return float(1.0 / np.mean(1.0 / vec))


def build_scoring(summary: str = "default", positive_class: Any = "virginica") -> Dict[str, Any]:
    # custom summary는 기본 summary(Accuracy, Kappa)를 대체함
    if summary == "default":
        return dict(DEFAULT_SCORING)
    if summary == "custom_accuracy":
        return {CUSTOM_METRIC_NAME: make_scorer(custom_accuracy, positive_class=positive_class)}
    raise ValueError(f"Unknown summary function: {summary}")


def build_cv(n_splits: int = 5, seed: int = 1234) -> StratifiedKFold:
    return StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=seed)


def compute_metrics(y_true, y_pred, positive_class: Any = "virginica") -> Dict[str, Any]:
    y_true, y_pred = _as_labels(y_true, y_pred)
    labels = _label_set(y_true, y_pred, positive_class)
    return {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "kappa": float(cohen_kappa_score(y_true, y_pred)),
        "sensitivity": sensitivity_score(y_true, y_pred, positive_class, labels),
        CUSTOM_METRIC_NAME: custom_accuracy(y_true, y_pred, positive_class, labels),
        "confusion_matrix": confusion_matrix(y_true, y_pred, labels=labels).tolist(),
        "classification_report": classification_report(y_true, y_pred, zero_division=0),
    }


def resampled_confusion_matrix(pipe, X: pd.DataFrame, y: pd.Series,
                               cv: StratifiedKFold) -> Tuple[pd.DataFrame, float, pd.DataFrame]:
    """Confusion matrix of `pipe` across the held-out folds of `cv`.

    Each fold's table is divided by its total, the tables are averaged over folds
    and reported in percent. Rows are predictions, columns the reference labels.
    Also returns the average fold accuracy and the held-out predictions.
    """
    if isinstance(y.dtype, pd.CategoricalDtype):
        labels = list(y.cat.categories)
    else:
        labels = sorted(pd.unique(y))

    tables = []
    accs = []
    rows = []
    for fold, (tr_idx, te_idx) in enumerate(cv.split(X, y), start=1):
        X_tr, X_te = X.iloc[tr_idx], X.iloc[te_idx]
        y_tr, y_te = y.iloc[tr_idx], y.iloc[te_idx]

        model = clone(pipe)
        model.fit(X_tr, y_tr)
        pred = model.predict(X_te)

        # confusion_matrix는 (실제, 예측) 순서 → 전치해서 (예측, 실제)
        cm = confusion_matrix(np.asarray(y_te), pred, labels=labels).T
        tables.append(cm / cm.sum())
        accs.append(np.trace(cm) / cm.sum())

        rows.append(pd.DataFrame({
            "rowIndex": te_idx,
            "obs": np.asarray(y_te),
            "pred": pred,
            "Resample": f"Fold{fold}",
        }))

    avg = np.mean(tables, axis=0) * 100
    table = pd.DataFrame(
        avg,
        index=pd.Index(labels, name="Prediction"),
        columns=pd.Index(labels, name="Reference"),
    )
    predictions = pd.concat(rows, ignore_index=True)
    return table, float(np.mean(accs)), predictions
