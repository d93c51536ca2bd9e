# rfmetric/tuning.py
from __future__ import annotations
import logging
from typing import Any, Dict, List

import numpy as np
import pandas as pd

# 모델 및 유틸리티 라이브러리
from sklearn.model_selection import GridSearchCV, RandomizedSearchCV
from sklearn.pipeline import Pipeline

from rfmetric.evaluation import build_cv, build_scoring, resampled_confusion_matrix
from rfmetric.models.random_forest import build_model

logger = logging.getLogger(__name__)

SEED_HIGH = 10000


# ==========================================
# 1. 재현성을 위한 seed 생성
# ==========================================
def make_seeds(n_candidates: int, seed: int = 1234) -> Dict[str, Any]:
    """
    - split: fold 배정용 seed
    - candidates: grid 후보별 RandomForest random_state
    """
    rng = np.random.default_rng(seed)
    draws = rng.integers(1, SEED_HIGH + 1, size=n_candidates + 1)
    return {
        "split": int(draws[0]),
        "candidates": [int(s) for s in draws[1:]],
    }


# ==========================================
# 2. cv_results_ → 결과 테이블
# ==========================================
def results_table(cv_results: Dict[str, Any], scoring_names: List[str]) -> pd.DataFrame:
    params = pd.DataFrame(list(cv_results["params"]))
    # 'clf__' 접두사 제거, 후보별 seed는 결과에서 제외
    params = params.rename(columns=lambda c: c.replace("clf__", ""))
    params = params.drop(columns=["random_state"], errors="ignore")

    n_splits = len([k for k in cv_results if k.startswith("split") and k.endswith(f"_test_{scoring_names[0]}")])

    out = params.copy()
    for name in scoring_names:
        folds = np.column_stack([cv_results[f"split{i}_test_{name}"] for i in range(n_splits)])
        out[name] = np.nanmean(folds, axis=1)
    for name in scoring_names:
        folds = np.column_stack([cv_results[f"split{i}_test_{name}"] for i in range(n_splits)])
        # fold 간 표본 표준편차 (ddof=1)
        out[f"{name}SD"] = np.nanstd(folds, axis=1, ddof=1)
    return out


# ==========================================
# 3. 메인 학습 함수 (CV + grid/random search)
# ==========================================
def train_model(
    X: pd.DataFrame,
    y: pd.Series,
    param_grid: List[Dict[str, Any]],
    *,
    metric: str = "Accuracy",
    summary: str = "default",
    positive_class: Any = "virginica",
    n_estimators: int = 500,
    n_splits: int = 5,
    search: str = "grid",
    n_iter: int = 10,
    seed: int = 1234,
    verbose: int = 0,
    n_jobs: int | None = None,
) -> Dict[str, Any]:

    scoring = build_scoring(summary, positive_class)
    if metric not in scoring:
        raise ValueError(
            f"metric '{metric}' is not produced by summary '{summary}' "
            f"(available: {list(scoring)})"
        )

    seeds = make_seeds(len(param_grid), seed)
    cv = build_cv(n_splits=n_splits, seed=seeds["split"])

    # 후보별 seed를 붙여서 파이프라인 파라미터 이름으로 변환
    candidates = []
    for params, cand_seed in zip(param_grid, seeds["candidates"]):
        cand = {f"clf__{k}": [v] for k, v in params.items()}
        cand["clf__random_state"] = [cand_seed]
        candidates.append(cand)

    # 파이프라인: 모델 (RandomForest는 스케일링 불필요)
    pipeline = Pipeline([
        ("clf", build_model(n_estimators=n_estimators, n_jobs=n_jobs)),
    ])

    if search == "grid":
        searcher = GridSearchCV(
            pipeline,
            candidates,
            scoring=scoring,
            refit=metric,  # 이 지표가 가장 높은 후보를 선택
            cv=cv,
            n_jobs=n_jobs,
            verbose=verbose,
        )
    elif search == "random":
        searcher = RandomizedSearchCV(
            pipeline,
            candidates,
            n_iter=min(n_iter, len(candidates)),  # 랜덤 탐색 횟수
            scoring=scoring,
            refit=metric,
            cv=cv,
            n_jobs=n_jobs,
            verbose=verbose,
            random_state=seeds["split"],
        )
    else:
        raise ValueError(f"Unknown search method: {search}")

    n_fits = len(candidates) if search == "grid" else min(n_iter, len(candidates))
    logger.info("Fitting %d folds for each of %d candidates (metric=%s, search=%s)",
                n_splits, n_fits, metric, search)
    searcher.fit(X, y)

    table = results_table(searcher.cv_results_, list(scoring))
    best_params = {k.replace("clf__", ""): v for k, v in searcher.best_params_.items()
                   if k != "clf__random_state"}
    logger.info("Selected %s = %.4f with %s", metric, searcher.best_score_, best_params)

    # 선택된 후보의 held-out 예측으로 confusion matrix 계산
    best_pipe = pipeline.set_params(**searcher.best_params_)
    cm, cv_accuracy, predictions = resampled_confusion_matrix(best_pipe, X, y, cv)

    return {
        "metric": metric,
        "summary": summary,
        "search": search,
        "results": table,
        "best_params": best_params,
        "best_score": float(searcher.best_score_),
        "best_estimator": searcher.best_estimator_,
        "confusion_matrix": cm,
        "cv_accuracy": cv_accuracy,
        "predictions": predictions,
        "seeds": seeds,
    }
